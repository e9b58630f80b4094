"""
Schedule Builder: participant list + format -> initial match drafts.

Pure functions. No session, no ORM objects; the orchestrator persists the
drafts. Match numbers are dense and increasing across the whole schedule
(1..N-1 for knockout, 1..C(N,2) for league).
"""
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from bracket_engine.errors import ValidationError
from bracket_engine.models.tournament import TournamentFormat
from bracket_engine.services.format_rules import (
    FormatLike,
    calculate_total_rounds,
    get_format_rule,
    validate_participant_count,
)


@dataclass(frozen=True)
class MatchDraft:
    round_number: int
    match_number: int
    slot_a_id: Optional[int]
    slot_b_id: Optional[int]
    scheduled_time: Optional[datetime] = None


def shuffle_participants(participants: Sequence[int], rng: Optional[random.Random] = None) -> List[int]:
    """Return a uniformly shuffled copy (random.shuffle is Fisher-Yates)."""
    shuffled = list(participants)
    (rng or random).shuffle(shuffled)
    return shuffled


def _require_distinct(participants: Sequence[int]) -> None:
    if len(set(participants)) != len(participants):
        raise ValidationError("Participants must be distinct", {"participant_count": len(participants)})


def generate_knockout_bracket(
    participants: Sequence[int],
    rng: Optional[random.Random] = None,
    scheduled_time: Optional[datetime] = None,
) -> List[MatchDraft]:
    """
    Single-elimination bracket.

    Round 1 pairs shuffled[2i-2] with shuffled[2i-1]; every later round is a set
    of placeholder matches (both slots null) filled by the advancement engine.
    """
    validate_participant_count(len(participants), TournamentFormat.knockout)
    _require_distinct(participants)

    shuffled = shuffle_participants(participants, rng)
    total_rounds = calculate_total_rounds(len(shuffled), TournamentFormat.knockout)

    drafts: List[MatchDraft] = []
    match_number = 1
    for i in range(len(shuffled) // 2):
        drafts.append(
            MatchDraft(
                round_number=1,
                match_number=match_number,
                slot_a_id=shuffled[2 * i],
                slot_b_id=shuffled[2 * i + 1],
                scheduled_time=scheduled_time,
            )
        )
        match_number += 1

    for round_number in range(2, total_rounds + 1):
        for _ in range(len(shuffled) >> round_number):
            drafts.append(
                MatchDraft(
                    round_number=round_number,
                    match_number=match_number,
                    slot_a_id=None,
                    slot_b_id=None,
                    scheduled_time=scheduled_time,
                )
            )
            match_number += 1

    return drafts


def generate_league_matches(
    participants: Sequence[int],
    rng: Optional[random.Random] = None,
    scheduled_time: Optional[datetime] = None,
) -> List[MatchDraft]:
    """Round robin: every unordered pair once, all in round 1."""
    validate_participant_count(len(participants), TournamentFormat.league)
    _require_distinct(participants)

    # Shuffled only for schedule variety
    shuffled = shuffle_participants(participants, rng)

    drafts: List[MatchDraft] = []
    match_number = 1
    for i in range(len(shuffled)):
        for j in range(i + 1, len(shuffled)):
            drafts.append(
                MatchDraft(
                    round_number=1,
                    match_number=match_number,
                    slot_a_id=shuffled[i],
                    slot_b_id=shuffled[j],
                    scheduled_time=scheduled_time,
                )
            )
            match_number += 1

    return drafts


_BUILDERS: Dict[TournamentFormat, Callable[..., List[MatchDraft]]] = {
    TournamentFormat.knockout: generate_knockout_bracket,
    TournamentFormat.league: generate_league_matches,
}


def build_schedule(
    format: FormatLike,
    participants: Sequence[int],
    rng: Optional[random.Random] = None,
    scheduled_time: Optional[datetime] = None,
) -> List[MatchDraft]:
    """Dispatch to the builder for format. Unknown formats raise ValidationError."""
    get_format_rule(format)
    builder = _BUILDERS[TournamentFormat(format)]
    return builder(participants, rng=rng, scheduled_time=scheduled_time)
