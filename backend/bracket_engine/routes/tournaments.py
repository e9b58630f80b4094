from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import Session, select

from bracket_engine.database import get_session
from bracket_engine.errors import ConflictError, ValidationError
from bracket_engine.models.participant import Participant
from bracket_engine.models.tournament import Tournament, TournamentFormat, TournamentStatus
from bracket_engine.services import match_store
from bracket_engine.services.format_rules import is_valid_participant_count

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    format: TournamentFormat
    max_participants: int = Field(gt=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    format: str
    status: str
    max_participants: int
    created_at: datetime
    updated_at: datetime


class TournamentDetailResponse(TournamentResponse):
    participant_count: int
    ready_to_generate: bool


class ParticipantCreate(BaseModel):
    names: List[str] = Field(min_length=1)


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament in the upcoming state"""
    tournament = Tournament(
        name=tournament_data.name,
        format=tournament_data.format.value,
        status=TournamentStatus.upcoming.value,
        max_participants=tournament_data.max_participants,
    )
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID, with whether its roster can be scheduled yet"""
    tournament = match_store.get_tournament(session, tournament_id)
    participant_count = match_store.count_participants(session, tournament_id)
    return TournamentDetailResponse(
        **TournamentResponse.model_validate(tournament).model_dump(),
        participant_count=participant_count,
        ready_to_generate=(
            tournament.status == TournamentStatus.upcoming
            and is_valid_participant_count(participant_count, tournament.format)
        ),
    )


@router.get("/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse])
def list_participants(tournament_id: int, session: Session = Depends(get_session)):
    match_store.get_tournament(session, tournament_id)
    return session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
    ).all()


@router.post(
    "/tournaments/{tournament_id}/participants", response_model=List[ParticipantResponse], status_code=201
)
def register_participants(
    tournament_id: int, payload: ParticipantCreate, session: Session = Depends(get_session)
):
    """Register participants. Only while the tournament is upcoming and has room."""
    tournament = match_store.get_tournament(session, tournament_id, for_update=True)
    if tournament.status != TournamentStatus.upcoming:
        raise ConflictError("Registration is closed once a schedule has been generated")

    names = [n.strip() for n in payload.names]
    if any(not n for n in names) or len(set(names)) != len(names):
        raise ValidationError("Participant names must be non-empty and distinct")

    current = match_store.count_participants(session, tournament_id)
    if current + len(names) > tournament.max_participants:
        raise ConflictError(
            f"Tournament is full ({current}/{tournament.max_participants} registered)",
            {"requested": len(names)},
        )

    existing = set(
        session.exec(select(Participant.name).where(Participant.tournament_id == tournament_id)).all()
    )
    duplicates = sorted(existing.intersection(names))
    if duplicates:
        raise ConflictError(f"Already registered: {', '.join(duplicates)}")

    participants = [Participant(tournament_id=tournament_id, name=n) for n in names]
    session.add_all(participants)
    session.commit()
    for p in participants:
        session.refresh(p)
    return participants
