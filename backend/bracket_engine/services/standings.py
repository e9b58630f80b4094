"""
League standings computed from completed matches.

Read-only. 3 points per win; ties in points broken by wins, then total score,
then participant id for a stable order.
"""
from dataclasses import dataclass, field
from typing import Dict, List

from sqlmodel import Session, select

from bracket_engine.errors import ValidationError
from bracket_engine.models.match import MatchStatus
from bracket_engine.models.participant import Participant
from bracket_engine.services import match_store
from bracket_engine.services.format_rules import is_bracket_format

POINTS_PER_WIN = 3


@dataclass
class StandingRow:
    participant_id: int
    name: str
    played: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    total_score: int = 0
    rank: int = field(default=0)


def compute_standings(session: Session, tournament_id: int) -> List[StandingRow]:
    tournament = match_store.get_tournament(session, tournament_id)
    if is_bracket_format(tournament.format):
        raise ValidationError("Standings are only available for league format tournaments")

    participants = session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
    ).all()
    rows: Dict[int, StandingRow] = {p.id: StandingRow(participant_id=p.id, name=p.name) for p in participants}

    for match in match_store.list_matches(session, tournament_id):
        if match.status != MatchStatus.completed:
            continue
        for pid, score in ((match.slot_a_id, match.score_a), (match.slot_b_id, match.score_b)):
            row = rows.get(pid)
            if row is None:
                continue
            row.played += 1
            row.total_score += score or 0
            if pid == match.winner_id:
                row.wins += 1
                row.points += POINTS_PER_WIN
            else:
                row.losses += 1

    ordered = sorted(rows.values(), key=lambda r: (-r.points, -r.wins, -r.total_score, r.participant_id))
    for rank, row in enumerate(ordered, start=1):
        row.rank = rank
    return ordered
