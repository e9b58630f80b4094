"""
Schedule endpoints: generate (one-shot), delete, and read the bracket/league.
Generation and deletion go through the orchestrator's single-transaction path.
"""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from bracket_engine.database import get_session
from bracket_engine.models.match import Match
from bracket_engine.services import advancement_service, match_store, tournament_orchestrator
from bracket_engine.services.format_rules import round_label

router = APIRouter()


class MatchState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    round_number: int
    match_number: int
    slot_a_id: Optional[int] = None
    slot_b_id: Optional[int] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner_id: Optional[int] = None
    status: str
    scheduled_time: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class GenerateScheduleRequest(BaseModel):
    scheduled_time: Optional[datetime] = None


class GenerateScheduleResponse(BaseModel):
    tournament_id: int
    tournament_status: str
    statistics: Dict[str, object]
    matches: List[MatchState]


class DeleteScheduleResponse(BaseModel):
    tournament_id: int
    tournament_status: str
    deleted_count: int


class RoundState(BaseModel):
    round_number: int
    round_name: str
    is_complete: bool
    winner_ids: List[int]
    matches: List[MatchState]


class TournamentMatchesResponse(BaseModel):
    tournament_id: int
    format: str
    status: str
    total_matches: int
    rounds: List[RoundState]


def match_to_state(m: Match) -> MatchState:
    return MatchState.model_validate(m)


@router.post(
    "/tournaments/{tournament_id}/schedule",
    response_model=GenerateScheduleResponse,
    status_code=201,
)
def generate_schedule(
    tournament_id: int,
    payload: Optional[GenerateScheduleRequest] = None,
    session: Session = Depends(get_session),
) -> GenerateScheduleResponse:
    """Generate the full schedule once and flip the tournament to live."""
    scheduled_time = payload.scheduled_time if payload else None
    result = tournament_orchestrator.generate_schedule(session, tournament_id, scheduled_time=scheduled_time)
    return GenerateScheduleResponse(
        tournament_id=tournament_id,
        tournament_status=result.tournament.status,
        statistics=result.statistics.to_dict(),
        matches=[match_to_state(m) for m in result.matches],
    )


@router.delete("/tournaments/{tournament_id}/schedule", response_model=DeleteScheduleResponse)
def delete_schedule(tournament_id: int, session: Session = Depends(get_session)) -> DeleteScheduleResponse:
    """Delete every match and reset the tournament to upcoming. Refused once completed."""
    result = tournament_orchestrator.delete_schedule(session, tournament_id)
    return DeleteScheduleResponse(
        tournament_id=tournament_id,
        tournament_status=result.tournament.status,
        deleted_count=result.deleted_count,
    )


@router.get("/tournaments/{tournament_id}/matches", response_model=TournamentMatchesResponse)
def get_tournament_matches(
    tournament_id: int,
    round: Optional[int] = None,
    session: Session = Depends(get_session),
) -> TournamentMatchesResponse:
    """Matches grouped by round, with display names. Stable order: round_number, match_number."""
    tournament = match_store.get_tournament(session, tournament_id)
    all_matches = match_store.list_matches(session, tournament_id)
    total_rounds = max((m.round_number for m in all_matches), default=0)

    matches = [m for m in all_matches if round is None or m.round_number == round]
    by_round: Dict[int, List[Match]] = {}
    for m in matches:
        by_round.setdefault(m.round_number, []).append(m)

    rounds = [
        RoundState(
            round_number=round_number,
            round_name=round_label(tournament.format, total_rounds, round_number),
            is_complete=advancement_service.is_round_complete(session, tournament_id, round_number),
            winner_ids=advancement_service.round_winners(session, tournament_id, round_number),
            matches=[match_to_state(m) for m in round_matches],
        )
        for round_number, round_matches in sorted(by_round.items())
    ]
    return TournamentMatchesResponse(
        tournament_id=tournament_id,
        format=tournament.format,
        status=tournament.status,
        total_matches=len(matches),
        rounds=rounds,
    )


@router.get("/matches/{match_id}", response_model=MatchState)
def get_match(match_id: int, session: Session = Depends(get_session)) -> MatchState:
    return match_to_state(match_store.get_match(session, match_id))
