"""
Persistence interface used by the engine.

Every function works inside the caller's Session and never commits; the
orchestrator owns the transaction boundary. Writes return the typed row that
was written.
"""
from datetime import datetime
from typing import Any, List, Optional, Sequence

from sqlalchemy import delete, update
from sqlmodel import Session, func, select

from bracket_engine.errors import ConflictError, NotFoundError
from bracket_engine.models.match import Match, MatchStatus
from bracket_engine.models.participant import Participant
from bracket_engine.models.tournament import Tournament, TournamentStatus
from bracket_engine.services.schedule_builder import MatchDraft


def get_tournament(session: Session, tournament_id: int, for_update: bool = False) -> Tournament:
    statement = select(Tournament).where(Tournament.id == tournament_id)
    if for_update:
        statement = statement.with_for_update().execution_options(populate_existing=True)
    tournament = session.exec(statement).first()
    if not tournament:
        raise NotFoundError("Tournament", tournament_id)
    return tournament


def update_tournament_status(session: Session, tournament: Tournament, status: TournamentStatus) -> Tournament:
    tournament.status = TournamentStatus(status).value
    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.flush()
    return tournament


def get_match(session: Session, match_id: int, for_update: bool = False) -> Match:
    statement = select(Match).where(Match.id == match_id)
    if for_update:
        statement = statement.with_for_update().execution_options(populate_existing=True)
    match = session.exec(statement).first()
    if not match:
        raise NotFoundError("Match", match_id)
    return match


def list_matches(session: Session, tournament_id: int, round_number: Optional[int] = None) -> List[Match]:
    """Matches for a tournament in bracket order (round, then match number)."""
    statement = select(Match).where(Match.tournament_id == tournament_id)
    if round_number is not None:
        statement = statement.where(Match.round_number == round_number)
    statement = statement.order_by(Match.round_number, Match.match_number)
    return list(session.exec(statement).all())


def list_round(session: Session, tournament_id: int, round_number: int, for_update: bool = False) -> List[Match]:
    statement = (
        select(Match)
        .where(Match.tournament_id == tournament_id, Match.round_number == round_number)
        .order_by(Match.match_number)
    )
    if for_update:
        statement = statement.with_for_update().execution_options(populate_existing=True)
    return list(session.exec(statement).all())


def count_matches(session: Session, tournament_id: int) -> int:
    return session.exec(select(func.count(Match.id)).where(Match.tournament_id == tournament_id)).one()


def insert_matches(session: Session, tournament_id: int, drafts: Sequence[MatchDraft]) -> List[Match]:
    matches = [
        Match(
            tournament_id=tournament_id,
            round_number=draft.round_number,
            match_number=draft.match_number,
            slot_a_id=draft.slot_a_id,
            slot_b_id=draft.slot_b_id,
            scheduled_time=draft.scheduled_time,
            status=MatchStatus.scheduled.value,
        )
        for draft in drafts
    ]
    session.add_all(matches)
    # Flush so ids are assigned and constraint violations surface inside the transaction
    session.flush()
    return matches


def update_match(session: Session, match: Match, **fields: Any) -> Match:
    for field, value in fields.items():
        if not hasattr(match, field):
            raise AttributeError(f"Match has no field '{field}'")
        setattr(match, field, value)
    match.updated_at = datetime.utcnow()
    session.add(match)
    session.flush()
    return match


def complete_match(session: Session, match: Match, score_a: int, score_b: int, winner_id: int) -> Match:
    """
    Write a result onto a match that is still scheduled.

    The UPDATE is conditional on status, so of two submissions that both read the
    match as scheduled only the first lands; the second raises ConflictError.
    """
    now = datetime.utcnow()
    result = session.execute(
        update(Match)
        .where(Match.id == match.id, Match.status == MatchStatus.scheduled.value)
        .values(
            score_a=score_a,
            score_b=score_b,
            winner_id=winner_id,
            status=MatchStatus.completed.value,
            completed_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise ConflictError(f"Match {match.id} is already completed", {"match_id": match.id})
    session.refresh(match)
    return match


def delete_matches(session: Session, tournament_id: int) -> int:
    result = session.execute(delete(Match).where(Match.tournament_id == tournament_id))
    return result.rowcount or 0


def count_participants(session: Session, tournament_id: int) -> int:
    return session.exec(
        select(func.count(Participant.id)).where(Participant.tournament_id == tournament_id)
    ).one()


def list_participant_ids(session: Session, tournament_id: int) -> List[int]:
    return list(
        session.exec(
            select(Participant.id).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
        ).all()
    )
