from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from bracket_engine.models.match import Match
    from bracket_engine.models.participant import Participant


class TournamentFormat(str, Enum):
    knockout = "knockout"
    league = "league"


class TournamentStatus(str, Enum):
    upcoming = "upcoming"
    live = "live"
    completed = "completed"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    format: TournamentFormat = Field(sa_column=Column(String, nullable=False))
    # upcoming -> live (schedule committed) -> completed (terminal state detected)
    status: TournamentStatus = Field(
        default=TournamentStatus.upcoming, sa_column=Column(String, nullable=False, default="upcoming")
    )
    max_participants: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="tournament")
    matches: List["Match"] = Relationship(back_populates="tournament")
