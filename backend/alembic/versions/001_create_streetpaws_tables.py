"""Create animals, vaccinations and helplines tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Initial schema. Helplines are seeded by the application on first
       start, not by this migration.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "animals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "animal_id",
            sa.String(32),
            nullable=False,
            comment="Public identifier SP-<year>-<sequence>, printed on the QR tag",
        ),
        sa.Column("species", sa.String(20), nullable=False),
        sa.Column("breed", sa.String(100), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("age", sa.String(20), nullable=True),
        sa.Column("size", sa.String(20), nullable=True),
        sa.Column("found_location", sa.Text(), nullable=True),
        sa.Column("area", sa.String(100), nullable=True),
        sa.Column("health_status", sa.String(20), nullable=True),
        sa.Column("vaccination_status", sa.String(20), nullable=True),
        sa.Column("medical_notes", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.String(255), nullable=True),
        sa.Column(
            "qr_code",
            sa.String(255),
            nullable=True,
            comment="Profile URL encoded into the QR tag",
        ),
        sa.Column(
            "registered_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("animal_id", name="uq_animals_animal_id"),
        sqlite_autoincrement=True,
    )
    op.create_index("idx_animals_species", "animals", ["species"])
    op.create_index("idx_animals_area", "animals", ["area"])

    op.create_table(
        "vaccinations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("animal_id", sa.Integer(), nullable=False),
        sa.Column("vaccine_name", sa.String(100), nullable=False),
        sa.Column("vaccination_date", sa.Date(), nullable=False),
        sa.Column("veterinarian", sa.String(100), nullable=True),
        sa.Column("next_due_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["animal_id"], ["animals.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_vaccinations_animal_id", "vaccinations", ["animal_id"])

    op.create_table(
        "helplines",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("hours", sa.String(100), nullable=False),
        sa.Column("coverage", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("helplines")
    op.drop_index("idx_vaccinations_animal_id", table_name="vaccinations")
    op.drop_table("vaccinations")
    op.drop_index("idx_animals_area", table_name="animals")
    op.drop_index("idx_animals_species", table_name="animals")
    op.drop_table("animals")
