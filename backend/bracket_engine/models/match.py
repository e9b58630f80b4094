from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from bracket_engine.models.tournament import Tournament


class MatchStatus(str, Enum):
    # scheduled covers both "ready to play" and "awaiting participants"
    scheduled = "scheduled"
    completed = "completed"


class Match(SQLModel, table=True):
    # match_number is dense across the whole schedule, so it is unique per tournament
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "match_number", name="uq_match_tournament_number"),
        CheckConstraint("score_a IS NULL OR score_b IS NULL OR score_a <> score_b", name="ck_match_no_draw"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int
    match_number: int

    # Null slot = awaiting the winner of an earlier knockout match
    slot_a_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    slot_b_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    # Set together by the advancement engine, never independently
    score_a: Optional[int] = Field(default=None)
    score_b: Optional[int] = Field(default=None)
    winner_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    status: MatchStatus = Field(
        default=MatchStatus.scheduled, sa_column=Column(String, nullable=False, default="scheduled")
    )
    scheduled_time: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})
    completed_at: Optional[datetime] = Field(default=None)

    tournament: "Tournament" = Relationship(back_populates="matches")

    @property
    def has_both_slots(self) -> bool:
        return self.slot_a_id is not None and self.slot_b_id is not None
