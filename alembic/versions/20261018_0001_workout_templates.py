"""workout template catalog"""

from alembic import op
import sqlalchemy as sa


revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "workout_templates",
        sa.Column("template_id", sa.String(length=80), primary_key=True),
        sa.Column("name", sa.String(length=180), nullable=False),
        sa.Column("modality", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=60), nullable=False),
        sa.Column("adaptation", sa.String(length=60), nullable=False),
        sa.Column("difficulty_level", sa.String(length=20), nullable=False, server_default="intermediate"),
        sa.Column("estimated_load", sa.Float(), nullable=False, server_default="0"),
        sa.Column("time_required_minutes", sa.Float(), nullable=False),
        sa.Column("equipment_json", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("structure_json", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("modality in ('running', 'cycling', 'swimming')", name="ck_workout_templates_modality"),
        sa.CheckConstraint("time_required_minutes >= 0", name="ck_workout_templates_time_required"),
    )
    op.create_index("ix_workout_templates_modality", "workout_templates", ["modality"])
    op.create_index("ix_workout_templates_modality_adaptation", "workout_templates", ["modality", "adaptation"])


def downgrade() -> None:
    op.drop_index("ix_workout_templates_modality_adaptation", table_name="workout_templates")
    op.drop_index("ix_workout_templates_modality", table_name="workout_templates")
    op.drop_table("workout_templates")
