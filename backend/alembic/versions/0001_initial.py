"""tournament, match, set and point ledger tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "tournament",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("set_format", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "regular_set_points", sa.Integer(), nullable=False, server_default="25"
        ),
        sa.Column(
            "final_set_points", sa.Integer(), nullable=False, server_default="15"
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column(
            "tournament_id", sa.String(), sa.ForeignKey("tournament.id"), nullable=False
        ),
        sa.Column("team_id", sa.String(), nullable=True),
        sa.Column("tournament_name", sa.String(), nullable=False),
        sa.Column("match_date", sa.String(), nullable=False),
        sa.Column("match_time", sa.String(), nullable=False),
        sa.Column("match_number", sa.String(), nullable=False),
        sa.Column("our_team", sa.String(), nullable=False),
        sa.Column("opponent_team", sa.String(), nullable=False),
        sa.Column("our_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("opponent_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_set", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "status", sa.String(), nullable=False, server_default="in_progress"
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_match_tournament_id", "match", ["tournament_id"])
    op.create_table(
        "match_set",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column(
            "match_id",
            sa.String(),
            sa.ForeignKey("match.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("set_number", sa.Integer(), nullable=False),
        sa.Column("our_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("opponent_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "status", sa.String(), nullable=False, server_default="in_progress"
        ),
        sa.Column("winning_team", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "match_id", "set_number", name="uq_match_set_match_id_set_number"
        ),
    )
    op.create_table(
        "point",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column(
            "match_id",
            sa.String(),
            sa.ForeignKey("match.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("set_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("point_number", sa.Integer(), nullable=False),
        sa.Column("scoring_team", sa.String(), nullable=False),
        sa.Column("our_score_after", sa.Integer(), nullable=False),
        sa.Column("opponent_score_after", sa.Integer(), nullable=False),
        sa.Column("scoring_player_id", sa.String(), nullable=True),
        sa.Column("losing_player_id", sa.String(), nullable=True),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "match_id",
            "set_number",
            "point_number",
            name="uq_point_match_id_set_number_point_number",
        ),
    )


def downgrade():
    op.drop_table("point")
    op.drop_table("match_set")
    op.drop_index("ix_match_tournament_id", table_name="match")
    op.drop_table("match")
    op.drop_table("tournament")
