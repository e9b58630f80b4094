"""Initial migration: create tournament, participant, match tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("format", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="upcoming"),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "name", name="uq_tournament_participant_name"),
    )
    op.create_index("ix_participant_tournament_id", "participant", ["tournament_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("slot_a_id", sa.Integer(), nullable=True),
        sa.Column("slot_b_id", sa.Integer(), nullable=True),
        sa.Column("score_a", sa.Integer(), nullable=True),
        sa.Column("score_b", sa.Integer(), nullable=True),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("scheduled_time", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["slot_a_id"], ["participant.id"]),
        sa.ForeignKeyConstraint(["slot_b_id"], ["participant.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["participant.id"]),
        sa.UniqueConstraint("tournament_id", "match_number", name="uq_match_tournament_number"),
        sa.CheckConstraint(
            "score_a IS NULL OR score_b IS NULL OR score_a <> score_b", name="ck_match_no_draw"
        ),
    )
    op.create_index("ix_match_tournament_id", "match", ["tournament_id"])


def downgrade() -> None:
    op.drop_index("ix_match_tournament_id", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_participant_tournament_id", table_name="participant")
    op.drop_table("participant")
    op.drop_table("tournament")
