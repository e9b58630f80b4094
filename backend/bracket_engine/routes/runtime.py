"""
Runtime: score submission and the advancement it triggers.
The winner is derived from the scores; callers never set winner or slots directly.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from bracket_engine.database import get_session
from bracket_engine.routes.schedule import MatchState, match_to_state
from bracket_engine.services import tournament_orchestrator
from bracket_engine.services.standings import compute_standings

router = APIRouter()


class ScoreSubmission(BaseModel):
    # Range and tie checks happen in the engine so they surface as VALIDATION_ERROR
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class PlacementState(BaseModel):
    successor_id: int
    successor_match_number: int
    slot: str
    participant_id: int
    changed: bool


class ScoreSubmissionResponse(BaseModel):
    match: MatchState
    winner_id: int
    placement: Optional[PlacementState] = None
    tournament_complete: bool


class ResolveBracketResponse(BaseModel):
    """Response for bracket repair"""
    matches_processed: int
    slots_filled: int
    unknown_before: int
    unknown_after: int
    tournament_complete: bool


class StandingState(BaseModel):
    rank: int
    participant_id: int
    name: str
    played: int
    wins: int
    losses: int
    points: int
    total_score: int


@router.post("/matches/{match_id}/score", response_model=ScoreSubmissionResponse)
def submit_score(
    match_id: int,
    payload: ScoreSubmission,
    session: Session = Depends(get_session),
) -> ScoreSubmissionResponse:
    """Submit a final score. Winner placement and the completion check run in the same transaction."""
    outcome = tournament_orchestrator.submit_score(session, match_id, payload.score_a, payload.score_b)
    placement = None
    if outcome.placement is not None:
        placement = PlacementState(**outcome.placement.__dict__)
    return ScoreSubmissionResponse(
        match=match_to_state(outcome.match),
        winner_id=outcome.winner_id,
        placement=placement,
        tournament_complete=outcome.tournament_complete,
    )


@router.post("/tournaments/{tournament_id}/bracket/resolve", response_model=ResolveBracketResponse)
def resolve_bracket(tournament_id: int, session: Session = Depends(get_session)) -> ResolveBracketResponse:
    """
    Re-run winner placement for every completed knockout match.

    Useful after recovering from an interrupted submission or importing results.
    Idempotent; a slot holding a different participant is reported as a conflict.
    """
    result = tournament_orchestrator.resolve_bracket(session, tournament_id)
    return ResolveBracketResponse(**result)


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingState])
def get_standings(tournament_id: int, session: Session = Depends(get_session)) -> List[StandingState]:
    return [StandingState(**row.__dict__) for row in compute_standings(session, tournament_id)]
