"""
Advancement: when a match is completed, place its winner into the downstream
knockout slot and detect whether the tournament has reached its terminal state.

record_score() is the only writer of scores, winners and downstream slots.
Nothing here commits; the orchestrator owns the transaction.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from sqlmodel import Session, func, select

from bracket_engine.errors import ConflictError, PreconditionFailedError, ValidationError
from bracket_engine.models.match import Match, MatchStatus
from bracket_engine.models.tournament import Tournament, TournamentFormat, TournamentStatus
from bracket_engine.services import match_store
from bracket_engine.services.format_rules import get_format_rule, is_bracket_format

logger = logging.getLogger(__name__)

SLOT_A = "a"
SLOT_B = "b"


@dataclass
class Placement:
    successor_id: int
    successor_match_number: int
    slot: str  # SLOT_A | SLOT_B
    participant_id: int
    changed: bool


@dataclass
class ScoreOutcome:
    match: Match
    winner_id: int
    placement: Optional[Placement]
    tournament_complete: bool


# ============================================================================
# Pure rules
# ============================================================================


def validate_scores(score_a: Optional[int], score_b: Optional[int]) -> None:
    if score_a is None or score_b is None:
        raise ValidationError("Both player scores are required")
    for value in (score_a, score_b):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError("Scores must be non-negative integers", {"score_a": score_a, "score_b": score_b})
    if score_a == score_b:
        raise ValidationError("Scores cannot be tied. There must be a winner", {"score_a": score_a, "score_b": score_b})


def determine_winner(match: Match, score_a: int, score_b: int) -> int:
    return match.slot_a_id if score_a > score_b else match.slot_b_id


def successor_position(position_in_round: int) -> Tuple[int, str]:
    """
    Bracket folding: 0-based position in round r -> (0-based index in round r+1, slot).

    Positions 2k and 2k+1 feed successor k, into slots A and B respectively.
    """
    return position_in_round // 2, SLOT_A if position_in_round % 2 == 0 else SLOT_B


# ============================================================================
# Winner placement (knockout)
# ============================================================================


def find_successor(session: Session, match: Match) -> Optional[Tuple[Match, str]]:
    """Return (successor match, slot) for a knockout match, or None for the final."""
    current_round = match_store.list_round(session, match.tournament_id, match.round_number)
    position = next((i for i, m in enumerate(current_round) if m.id == match.id), None)
    if position is None:
        raise ConflictError(f"Match {match.id} is not part of round {match.round_number}")

    next_round = match_store.list_round(session, match.tournament_id, match.round_number + 1, for_update=True)
    if not next_round:
        return None

    index, slot = successor_position(position)
    if index >= len(next_round):
        raise ConflictError(
            f"Bracket is malformed: round {match.round_number + 1} has no match at position {index + 1}",
            {"match_id": match.id, "round_number": match.round_number},
        )
    return next_round[index], slot


def place_winner(session: Session, match: Match) -> Optional[Placement]:
    """
    Write match.winner_id into its successor slot.

    Idempotent: a slot already holding the same winner is left alone. A slot
    holding someone else is a data integrity violation and raises ConflictError.
    Returns None when match is the final.
    """
    if match.status != MatchStatus.completed or match.winner_id is None:
        raise PreconditionFailedError(f"Match {match.id} has no winner to advance")

    found = find_successor(session, match)
    if found is None:
        return None
    successor, slot = found

    field = "slot_a_id" if slot == SLOT_A else "slot_b_id"
    occupant = getattr(successor, field)
    if occupant is not None and occupant != match.winner_id:
        raise ConflictError(
            f"Slot {slot.upper()} of match {successor.match_number} is already occupied by another participant",
            {"successor_id": successor.id, "slot": slot, "occupant_id": occupant, "winner_id": match.winner_id},
        )

    changed = occupant is None
    if changed:
        match_store.update_match(session, successor, **{field: match.winner_id})

    return Placement(
        successor_id=successor.id,
        successor_match_number=successor.match_number,
        slot=slot,
        participant_id=match.winner_id,
        changed=changed,
    )


# ============================================================================
# Termination detection
# ============================================================================


def _knockout_pending(session: Session, tournament_id: int) -> int:
    # Matches still awaiting a participant do not count against completion
    return session.exec(
        select(func.count(Match.id)).where(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.scheduled.value,
            Match.slot_a_id.is_not(None),
            Match.slot_b_id.is_not(None),
        )
    ).one()


def _league_pending(session: Session, tournament_id: int) -> int:
    return session.exec(
        select(func.count(Match.id)).where(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.scheduled.value,
        )
    ).one()


_PENDING_COUNTS: Dict[TournamentFormat, Callable[[Session, int], int]] = {
    TournamentFormat.knockout: _knockout_pending,
    TournamentFormat.league: _league_pending,
}


def is_tournament_complete(session: Session, tournament: Tournament) -> bool:
    get_format_rule(tournament.format)
    if match_store.count_matches(session, tournament.id) == 0:
        return False
    return _PENDING_COUNTS[TournamentFormat(tournament.format)](session, tournament.id) == 0


def _mark_complete_if_terminal(session: Session, tournament: Tournament) -> bool:
    complete = is_tournament_complete(session, tournament)
    if complete and tournament.status != TournamentStatus.completed:
        match_store.update_tournament_status(session, tournament, TournamentStatus.completed)
        logger.info(f"Tournament {tournament.id} completed")
    return complete


# ============================================================================
# Score submission
# ============================================================================


def record_score(session: Session, match_id: int, score_a: int, score_b: int) -> ScoreOutcome:
    """
    Score a match, advance its winner and run the completion check.

    Raises:
        ValidationError: scores missing, negative, non-integer or tied
        NotFoundError: unknown match
        ConflictError: match already completed, or successor slot collision
        PreconditionFailedError: match is still awaiting a player
    """
    validate_scores(score_a, score_b)

    match = match_store.get_match(session, match_id)
    # Tournament row lock serializes generation, deletion and scoring per tournament
    tournament = match_store.get_tournament(session, match.tournament_id, for_update=True)
    match = match_store.get_match(session, match_id, for_update=True)

    if match.status == MatchStatus.completed:
        raise ConflictError(f"Match {match.id} is already completed", {"match_id": match.id})
    if not match.has_both_slots:
        raise PreconditionFailedError(
            "Cannot score a match awaiting a player",
            {"match_id": match.id, "slot_a_id": match.slot_a_id, "slot_b_id": match.slot_b_id},
        )

    winner_id = determine_winner(match, score_a, score_b)
    match_store.complete_match(session, match, score_a, score_b, winner_id)

    placement = None
    if is_bracket_format(tournament.format):
        placement = place_winner(session, match)

    complete = _mark_complete_if_terminal(session, tournament)

    logger.info(
        "Match %s scored %s-%s, winner %s, placement %s, tournament_complete=%s",
        match.id,
        score_a,
        score_b,
        winner_id,
        f"{placement.slot.upper()}@{placement.successor_match_number}" if placement else None,
        complete,
    )
    return ScoreOutcome(match=match, winner_id=winner_id, placement=placement, tournament_complete=complete)


# ============================================================================
# Round queries and bracket repair
# ============================================================================


def is_round_complete(session: Session, tournament_id: int, round_number: int) -> bool:
    matches = match_store.list_round(session, tournament_id, round_number)
    return bool(matches) and all(m.winner_id is not None for m in matches)


def round_winners(session: Session, tournament_id: int, round_number: int) -> List[int]:
    """Winner ids of a round in match-number order, skipping unplayed matches."""
    return [
        m.winner_id for m in match_store.list_round(session, tournament_id, round_number) if m.winner_id is not None
    ]


def resolve_bracket(session: Session, tournament_id: int) -> Dict:
    """
    Re-apply winner placement for every completed knockout match.

    Returns:
        Dict with:
        - matches_processed: completed matches visited
        - slots_filled: downstream slots written during this call
        - unknown_before / unknown_after: matches with at least one empty slot
        - tournament_complete: completion check result after the repair

    Guarantees:
        - Idempotent (second call fills nothing)
        - Deterministic ordering (round, then match number)
        - Conflicting slots raise ConflictError instead of being overwritten
    """
    tournament = match_store.get_tournament(session, tournament_id, for_update=True)

    all_matches = match_store.list_matches(session, tournament_id)
    unknown_before = sum(1 for m in all_matches if not m.has_both_slots)

    matches_processed = 0
    slots_filled = 0
    if is_bracket_format(tournament.format):
        for match in all_matches:
            if match.status != MatchStatus.completed or match.winner_id is None:
                continue
            placement = place_winner(session, match)
            if placement and placement.changed:
                slots_filled += 1
            matches_processed += 1

    unknown_after = sum(1 for m in match_store.list_matches(session, tournament_id) if not m.has_both_slots)
    complete = _mark_complete_if_terminal(session, tournament)

    return {
        "matches_processed": matches_processed,
        "slots_filled": slots_filled,
        "unknown_before": unknown_before,
        "unknown_after": unknown_after,
        "tournament_complete": complete,
    }
