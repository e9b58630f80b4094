"""
Format Rules - participant-count policy and derived quantities (Single Source of Truth)

Every knockout/league distinction about legal roster sizes, match totals and
round naming lives here. Other modules dispatch through FORMAT_RULES instead of
branching on the format themselves.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from bracket_engine import config
from bracket_engine.errors import ValidationError
from bracket_engine.models.tournament import TournamentFormat

LEAGUE_ROUND_LABEL = "League Matches"

FormatLike = Union[TournamentFormat, str]


# =============================================================================
# Per-format rules
# =============================================================================


def _is_power_of_two(count: int) -> bool:
    return count > 0 and (count & (count - 1)) == 0


def _knockout_count_error(count: int) -> Optional[str]:
    if not _is_power_of_two(count):
        return f"Knockout format requires a power of 2 participants (4, 8, 16, 32). Current: {count}"
    # 1 passes the bit trick but cannot form a bracket
    if count < config.KNOCKOUT_MIN_PARTICIPANTS:
        return f"Knockout format requires at least {config.KNOCKOUT_MIN_PARTICIPANTS} participants"
    return None


def _league_count_error(count: int) -> Optional[str]:
    if count < config.LEAGUE_MIN_PARTICIPANTS:
        return f"League format requires at least {config.LEAGUE_MIN_PARTICIPANTS} participants"
    if count > config.LEAGUE_MAX_PARTICIPANTS:
        return f"League format supports maximum {config.LEAGUE_MAX_PARTICIPANTS} participants"
    return None


def _knockout_total_rounds(count: int) -> int:
    return max(count.bit_length() - 1, 0)


@dataclass(frozen=True)
class FormatRule:
    count_error: Callable[[int], Optional[str]]
    total_matches: Callable[[int], int]
    total_rounds: Callable[[int], int]
    has_bracket: bool


FORMAT_RULES: Dict[TournamentFormat, FormatRule] = {
    TournamentFormat.knockout: FormatRule(
        count_error=_knockout_count_error,
        total_matches=lambda n: n - 1,
        total_rounds=_knockout_total_rounds,
        has_bracket=True,
    ),
    TournamentFormat.league: FormatRule(
        count_error=_league_count_error,
        total_matches=lambda n: n * (n - 1) // 2,
        total_rounds=lambda n: 1,
        has_bracket=False,
    ),
}


def get_format_rule(format: FormatLike) -> FormatRule:
    """Resolve a format tag to its rule set, or raise ValidationError."""
    try:
        return FORMAT_RULES[TournamentFormat(format)]
    except ValueError:
        raise ValidationError(f"Unsupported tournament format: {format}", {"format": str(format)}) from None


# =============================================================================
# Public policy
# =============================================================================


def validate_participant_count(count: int, format: FormatLike) -> None:
    """Raise ValidationError unless count is a legal roster size for format."""
    rule = get_format_rule(format)
    message = rule.count_error(count)
    if message:
        raise ValidationError(message, {"participant_count": count, "format": TournamentFormat(format).value})


def is_valid_participant_count(count: int, format: FormatLike) -> bool:
    try:
        validate_participant_count(count, format)
    except ValidationError:
        return False
    return True


def calculate_total_matches(count: int, format: FormatLike) -> int:
    """knockout: n-1 (each match eliminates one player); league: C(n, 2)."""
    return get_format_rule(format).total_matches(count)


def calculate_total_rounds(count: int, format: FormatLike) -> int:
    return get_format_rule(format).total_rounds(count)


def is_bracket_format(format: FormatLike) -> bool:
    return get_format_rule(format).has_bracket


def get_round_name(total_rounds: int, current_round: int) -> str:
    """Display name for a knockout round. Presentation only."""
    rounds_from_end = total_rounds - current_round
    if rounds_from_end == 0:
        return "Finals"
    if rounds_from_end == 1:
        return "Semifinals"
    if rounds_from_end == 2:
        return "Quarterfinals"
    if rounds_from_end == 3:
        return "Round of 16"
    return f"Round {current_round}"


def round_label(format: FormatLike, total_rounds: int, current_round: int) -> str:
    if is_bracket_format(format):
        return get_round_name(total_rounds, current_round)
    return LEAGUE_ROUND_LABEL
