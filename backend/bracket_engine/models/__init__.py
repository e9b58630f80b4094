from bracket_engine.models.match import Match, MatchStatus
from bracket_engine.models.participant import Participant
from bracket_engine.models.tournament import Tournament, TournamentFormat, TournamentStatus

__all__ = [
    "Tournament",
    "TournamentFormat",
    "TournamentStatus",
    "Participant",
    "Match",
    "MatchStatus",
]
