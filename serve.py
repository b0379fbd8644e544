"""Run the substitution API under uvicorn.

Run with:  python3 serve.py [--host 0.0.0.0] [--port 8000] [--seed]
"""

from __future__ import annotations

import argparse
import os

import uvicorn

DEFAULT_PORT = 8000


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the workout substitution API.")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", DEFAULT_PORT)))
    parser.add_argument("--seed", action="store_true", help="migrate and seed the catalog before starting")
    args = parser.parse_args()

    if args.seed:
        from db.seed import setup_database

        setup_database()

    from api.main import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port, log_level="warning")


if __name__ == "__main__":
    main()
