from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from .db import Base
from .time_utils import utcnow


class Tournament(Base):
    """Format configuration shared by every match of a tournament."""

    __tablename__ = "tournament"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    set_format = Column(Integer, nullable=False, default=1)  # 1 | 3 | 5 | 7
    regular_set_points = Column(Integer, nullable=False, default=25)
    final_set_points = Column(Integer, nullable=False, default=15)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    tournament_id = Column(String, ForeignKey("tournament.id"), nullable=False)
    team_id = Column(String, nullable=True)  # owned by the team subsystem
    tournament_name = Column(String, nullable=False)
    match_date = Column(String, nullable=False)
    match_time = Column(String, nullable=False)
    match_number = Column(String, nullable=False)
    our_team = Column(String, nullable=False)
    opponent_team = Column(String, nullable=False)
    # set wins, not points; always written from a recount of the sets
    our_score = Column(Integer, nullable=False, default=0)
    opponent_score = Column(Integer, nullable=False, default=0)
    current_set = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default="in_progress")
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_match_tournament_id", "tournament_id"),)


class MatchSet(Base):
    __tablename__ = "match_set"
    id = Column(String, primary_key=True)
    match_id = Column(
        String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False
    )
    set_number = Column(Integer, nullable=False)
    our_score = Column(Integer, nullable=False, default=0)
    opponent_score = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="in_progress")
    winning_team = Column(String, nullable=True)  # "our" | "opponent" | None

    __table_args__ = (
        UniqueConstraint(
            "match_id", "set_number", name="uq_match_set_match_id_set_number"
        ),
    )


class Point(Base):
    __tablename__ = "point"
    id = Column(String, primary_key=True)
    match_id = Column(
        String, ForeignKey("match.id", ondelete="CASCADE"), nullable=False
    )
    set_number = Column(Integer, nullable=False, default=1)
    point_number = Column(Integer, nullable=False)
    scoring_team = Column(String, nullable=False)  # "our" | "opponent"
    our_score_after = Column(Integer, nullable=False)
    opponent_score_after = Column(Integer, nullable=False)
    # attribution ids belong to the roster subsystem; not enforced here
    scoring_player_id = Column(String, nullable=True)
    losing_player_id = Column(String, nullable=True)
    note = Column(Text, nullable=False, default="")
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "match_id",
            "set_number",
            "point_number",
            name="uq_point_match_id_set_number_point_number",
        ),
    )
