"""
Tests for participant-count policy, match totals and round naming.
"""

import pytest

from bracket_engine import config
from bracket_engine.errors import ValidationError
from bracket_engine.services.format_rules import (
    calculate_total_matches,
    calculate_total_rounds,
    get_round_name,
    is_valid_participant_count,
    round_label,
    validate_participant_count,
)


@pytest.mark.parametrize("count", [4, 8, 16, 32, 64])
def test_knockout_accepts_powers_of_two(count):
    validate_participant_count(count, "knockout")


@pytest.mark.parametrize("count", [0, 1, 2, 3, 5, 6, 12, 24, -4])
def test_knockout_rejects_other_counts(count):
    with pytest.raises(ValidationError):
        validate_participant_count(count, "knockout")


def test_knockout_one_is_rejected_as_below_minimum():
    """1 passes the power-of-two bit trick but is not a bracket."""
    with pytest.raises(ValidationError) as exc_info:
        validate_participant_count(1, "knockout")
    assert "at least 4" in exc_info.value.message


def test_knockout_non_power_message_mentions_count():
    with pytest.raises(ValidationError) as exc_info:
        validate_participant_count(6, "knockout")
    assert "power of 2" in exc_info.value.message
    assert "Current: 6" in exc_info.value.message


def test_league_bounds():
    assert not is_valid_participant_count(2, "league")
    assert is_valid_participant_count(3, "league")
    assert is_valid_participant_count(16, "league")
    assert not is_valid_participant_count(17, "league")


def test_league_upper_bound_follows_config(monkeypatch):
    monkeypatch.setattr(config, "LEAGUE_MAX_PARTICIPANTS", 6)
    assert is_valid_participant_count(6, "league")
    assert not is_valid_participant_count(7, "league")


def test_unsupported_format():
    with pytest.raises(ValidationError) as exc_info:
        validate_participant_count(8, "swiss")
    assert "Unsupported tournament format" in exc_info.value.message


def test_total_matches():
    assert calculate_total_matches(8, "knockout") == 7
    assert calculate_total_matches(64, "knockout") == 63
    assert calculate_total_matches(3, "league") == 3
    assert calculate_total_matches(16, "league") == 120


def test_total_rounds():
    assert calculate_total_rounds(4, "knockout") == 2
    assert calculate_total_rounds(32, "knockout") == 5
    assert calculate_total_rounds(10, "league") == 1


def test_round_names():
    assert get_round_name(3, 3) == "Finals"
    assert get_round_name(3, 2) == "Semifinals"
    assert get_round_name(3, 1) == "Quarterfinals"
    assert get_round_name(4, 1) == "Round of 16"
    assert get_round_name(6, 1) == "Round 1"
    assert get_round_name(6, 2) == "Round 2"


def test_round_label_for_league():
    assert round_label("league", 1, 1) == "League Matches"
    assert round_label("knockout", 1, 1) == "Finals"
