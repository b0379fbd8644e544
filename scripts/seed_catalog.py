from __future__ import annotations

import argparse

from sqlalchemy import func, select

from api.observability import configure_logging
from core.config import get_settings
from core.db import session_scope
from core.models import WorkoutTemplateRecord
from db.seed import setup_database


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Migrate the catalog database and load the built-in workout templates.")
    parser.add_argument("--refresh", action="store_true", help="overwrite templates that already exist")
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)
    written = setup_database(refresh=args.refresh)
    with session_scope() as s:
        rows = s.execute(
            select(WorkoutTemplateRecord.modality, func.count()).group_by(WorkoutTemplateRecord.modality)
        ).all()

    print(f"templates_written={written}")
    for modality, count in sorted(rows):
        print(f"{modality}={count}")
    return 0 if rows else 1


if __name__ == "__main__":
    raise SystemExit(main())
