from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import (
    DEFAULT_FINAL_SET_POINTS,
    DEFAULT_REGULAR_SET_POINTS,
    DEFAULT_SET_FORMAT,
)
from .scoring.volleyball import NEEDED_SET_WINS

ScoringTeam = Literal["our", "opponent"]
MatchStatus = Literal["in_progress", "completed"]


def _validate_set_format(value: int) -> int:
    if isinstance(value, bool) or value not in NEEDED_SET_WINS:
        allowed = ", ".join(str(v) for v in sorted(NEEDED_SET_WINS))
        raise ValueError(f"setFormat must be one of {allowed}")
    return value


def _required_text(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field_name} must not be empty")
    return trimmed


class TournamentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    setFormat: int = DEFAULT_SET_FORMAT
    regularSetPoints: int = Field(default=DEFAULT_REGULAR_SET_POINTS, ge=1)
    finalSetPoints: int = Field(default=DEFAULT_FINAL_SET_POINTS, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _required_text(value, "name")

    @field_validator("setFormat")
    @classmethod
    def _check_set_format(cls, value: int) -> int:
        return _validate_set_format(value)


class TournamentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    setFormat: Optional[int] = None
    regularSetPoints: Optional[int] = Field(default=None, ge=1)
    finalSetPoints: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _required_text(value, "name")

    @field_validator("setFormat")
    @classmethod
    def _check_set_format(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        return _validate_set_format(value)


class TournamentOut(BaseModel):
    id: str
    name: str
    setFormat: int
    regularSetPoints: int
    finalSetPoints: int


class MatchCreate(BaseModel):
    tournamentId: str
    teamId: Optional[str] = None
    ourTeam: str = Field(..., min_length=1, max_length=200)
    opponentTeam: str = Field(..., min_length=1, max_length=200)
    matchDate: str = Field(..., min_length=1)
    matchTime: str = Field(..., min_length=1)
    matchNumber: str = Field(..., min_length=1)

    @field_validator("ourTeam", "opponentTeam", mode="before")
    @classmethod
    def _strip_team(cls, value: str) -> str:
        return _required_text(value, "team name")


class MatchSetOut(BaseModel):
    """Running score and outcome of one set."""

    id: str
    setNumber: int
    ourScore: int
    opponentScore: int
    status: MatchStatus
    winningTeam: Optional[ScoringTeam] = None


class MatchOut(BaseModel):
    """Match header. ``ourScore``/``opponentScore`` count sets won."""

    id: str
    tournamentId: str
    tournament: str
    teamId: Optional[str] = None
    matchDate: str
    matchTime: str
    matchNumber: str
    ourTeam: str
    opponentTeam: str
    ourScore: int
    opponentScore: int
    currentSet: int
    status: MatchStatus
    sets: List[MatchSetOut] = Field(default_factory=list)
    createdAt: Optional[datetime] = None


class PointIn(BaseModel):
    scoringTeam: ScoringTeam
    scoringPlayerId: Optional[str] = None
    losingPlayerId: Optional[str] = None
    note: Optional[str] = Field(default=None, max_length=2000)


class PointUpdate(BaseModel):
    note: Optional[str] = Field(default=None, max_length=2000)
    scoringTeam: Optional[ScoringTeam] = None
    scoringPlayerId: Optional[str] = None
    losingPlayerId: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _ensure_fields(self) -> "PointUpdate":
        if not self.model_fields_set:
            raise ValueError("no update fields provided")
        return self

    def changes(self) -> dict:
        """Supplied fields keyed by their service-layer names."""

        names = {
            "note": "note",
            "scoringTeam": "scoring_team",
            "scoringPlayerId": "scoring_player_id",
            "losingPlayerId": "losing_player_id",
        }
        return {
            names[key]: value
            for key, value in self.model_dump(exclude_unset=True).items()
        }


class PointOut(BaseModel):
    id: str
    matchId: str
    setNumber: int
    pointNumber: int
    scoringTeam: ScoringTeam
    ourScoreAfter: int
    opponentScoreAfter: int
    scoringPlayerId: Optional[str] = None
    losingPlayerId: Optional[str] = None
    note: str = ""
    createdAt: Optional[datetime] = None


class OkOut(BaseModel):
    ok: bool = True
