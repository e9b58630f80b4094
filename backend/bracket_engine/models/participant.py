from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from bracket_engine.models.tournament import Tournament


class Participant(SQLModel, table=True):
    """A registered player or team. The engine only cares about identity."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "name", name="uq_tournament_participant_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="participants")
