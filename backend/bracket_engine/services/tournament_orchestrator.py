"""
Tournament Orchestrator - transactional boundary of the engine

Operations:
1. generate_schedule: validate roster, build drafts, insert matches, upcoming -> live
2. submit_score: score + winner placement + completion check
3. delete_schedule: drop all matches, back to upcoming
4. resolve_bracket: idempotent placement repair

Each operation runs as exactly one transaction via run_in_transaction: commit on
success, full rollback on any failure, bounded retry only on persistence
contention (OperationalError).
"""

import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from bracket_engine.errors import ConflictError
from bracket_engine.models.match import Match
from bracket_engine.models.tournament import Tournament, TournamentFormat, TournamentStatus
from bracket_engine.services import advancement_service, match_store
from bracket_engine.services.advancement_service import ScoreOutcome
from bracket_engine.services.format_rules import (
    calculate_total_matches,
    calculate_total_rounds,
    validate_participant_count,
)
from bracket_engine.services.schedule_builder import build_schedule
from bracket_engine.utils.retry import run_in_transaction

logger = logging.getLogger(__name__)


# ============================================================================
# Result objects
# ============================================================================


class ScheduleStatistics:
    """Counts reported alongside a freshly generated schedule"""

    def __init__(self, format: str, total_participants: int, matches_created: int):
        self.format = format
        self.total_participants = total_participants
        self.total_matches = calculate_total_matches(total_participants, format)
        self.total_rounds = calculate_total_rounds(total_participants, format)
        self.matches_created = matches_created

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "total_participants": self.total_participants,
            "total_matches": self.total_matches,
            "total_rounds": self.total_rounds,
            "matches_created": self.matches_created,
        }


class ScheduleResult:
    """Complete result of schedule generation"""

    def __init__(self, tournament: Tournament, matches: List[Match], statistics: ScheduleStatistics):
        self.tournament = tournament
        self.matches = matches
        self.statistics = statistics


class DeleteScheduleResult:
    def __init__(self, tournament: Tournament, deleted_count: int):
        self.tournament = tournament
        self.deleted_count = deleted_count


# ============================================================================
# Operations
# ============================================================================


def generate_schedule(
    session: Session,
    tournament_id: int,
    rng: Optional[random.Random] = None,
    scheduled_time: Optional[datetime] = None,
) -> ScheduleResult:
    """
    Build and persist the full schedule for a tournament, exactly once.

    Raises:
        NotFoundError: unknown tournament
        ConflictError: matches already exist, or tournament is not upcoming
        ValidationError: participant count illegal for the tournament's format
    """

    def _generate(session: Session) -> ScheduleResult:
        tournament = match_store.get_tournament(session, tournament_id, for_update=True)

        existing = match_store.count_matches(session, tournament_id)
        if existing > 0:
            raise ConflictError(
                "Matches have already been generated for this tournament",
                {"tournament_id": tournament_id, "existing_matches": existing},
            )
        if tournament.status != TournamentStatus.upcoming:
            raise ConflictError(
                f"Matches can only be generated for upcoming tournaments (status: {TournamentStatus(tournament.status).value})",
                {"tournament_id": tournament_id},
            )

        participant_ids = match_store.list_participant_ids(session, tournament_id)
        validate_participant_count(len(participant_ids), tournament.format)

        drafts = build_schedule(tournament.format, participant_ids, rng=rng, scheduled_time=scheduled_time)
        matches = match_store.insert_matches(session, tournament_id, drafts)
        match_store.update_tournament_status(session, tournament, TournamentStatus.live)

        statistics = ScheduleStatistics(
            format=TournamentFormat(tournament.format).value,
            total_participants=len(participant_ids),
            matches_created=len(matches),
        )
        logger.info(
            f"SCHEDULE: Generated {len(matches)} {statistics.format} matches "
            f"over {statistics.total_rounds} round(s) for tournament {tournament_id}"
        )
        return ScheduleResult(tournament=tournament, matches=matches, statistics=statistics)

    return run_in_transaction(session, _generate)


def submit_score(session: Session, match_id: int, score_a: int, score_b: int) -> ScoreOutcome:
    """Record a result and propagate it; all-or-nothing."""
    return run_in_transaction(session, lambda s: advancement_service.record_score(s, match_id, score_a, score_b))


def delete_schedule(session: Session, tournament_id: int) -> DeleteScheduleResult:
    """
    Remove every match of a tournament and reset it to upcoming.

    Raises:
        NotFoundError: unknown tournament
        ConflictError: tournament already completed
    """

    def _delete(session: Session) -> DeleteScheduleResult:
        tournament = match_store.get_tournament(session, tournament_id, for_update=True)
        if tournament.status == TournamentStatus.completed:
            raise ConflictError(
                "Cannot delete matches for completed tournaments", {"tournament_id": tournament_id}
            )

        deleted = match_store.delete_matches(session, tournament_id)
        match_store.update_tournament_status(session, tournament, TournamentStatus.upcoming)
        logger.info(f"SCHEDULE: Deleted {deleted} matches for tournament {tournament_id}, reset to upcoming")
        return DeleteScheduleResult(tournament=tournament, deleted_count=deleted)

    return run_in_transaction(session, _delete)


def resolve_bracket(session: Session, tournament_id: int) -> Dict[str, Any]:
    """Transactional wrapper around advancement_service.resolve_bracket."""
    return run_in_transaction(session, lambda s: advancement_service.resolve_bracket(s, tournament_id))
