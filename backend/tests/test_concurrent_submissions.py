"""
Two sessions racing on one tournament.

Uses a file-backed SQLite database so each Session holds its own connection,
with the same BEGIN IMMEDIATE locking the application engine uses.
"""
import random

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from bracket_engine.database import enable_sqlite_write_locking
from bracket_engine.errors import ConflictError
from bracket_engine.models.match import Match, MatchStatus
from bracket_engine.models.participant import Participant
from bracket_engine.models.tournament import Tournament, TournamentStatus
from bracket_engine.services import match_store
from bracket_engine.services.tournament_orchestrator import generate_schedule, submit_score


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'bracket.db'}",
        # Fail fast on a held lock so retries exhaust quickly
        connect_args={"check_same_thread": False, "timeout": 0.05},
    )
    enable_sqlite_write_locking(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def _seed(engine, format: str, players: int) -> int:
    with Session(engine) as session:
        tournament = Tournament(
            name="Race Cup", format=format, status=TournamentStatus.upcoming.value, max_participants=players
        )
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
        tournament_id = tournament.id

        for i in range(1, players + 1):
            session.add(Participant(tournament_id=tournament_id, name=f"P{i}"))
        session.commit()

        generate_schedule(session, tournament_id, rng=random.Random(0))
    return tournament_id


def test_same_match_second_submission_is_locked_out_then_conflicts(file_engine):
    tournament_id = _seed(file_engine, "league", 3)

    with Session(file_engine) as holder, Session(file_engine) as contender:
        # Any statement opens holder's transaction and takes the write lock
        match = match_store.list_matches(holder, tournament_id)[0]
        match_id, slot_b = match.id, match.slot_b_id

        with pytest.raises(OperationalError):
            submit_score(contender, match_id, 21, 5)

        outcome = submit_score(holder, match_id, 5, 21)
        assert outcome.winner_id == slot_b

        with pytest.raises(ConflictError):
            submit_score(contender, match_id, 21, 5)

    with Session(file_engine) as check:
        row = match_store.get_match(check, match_id)
        assert (row.score_a, row.score_b, row.winner_id) == (5, 21, slot_b)
        assert row.status == MatchStatus.completed


def test_sibling_matches_serialize_into_one_successor(file_engine):
    tournament_id = _seed(file_engine, "knockout", 4)

    with Session(file_engine) as holder, Session(file_engine) as contender:
        first, second = match_store.list_round(holder, tournament_id, 1)
        first_id, second_id = first.id, second.id

        with pytest.raises(OperationalError):
            submit_score(contender, second_id, 21, 10)

        top = submit_score(holder, first_id, 21, 10)
        bottom = submit_score(contender, second_id, 10, 21)

        assert (top.placement.slot, bottom.placement.slot) == ("a", "b")
        assert top.placement.successor_id == bottom.placement.successor_id

    with Session(file_engine) as check:
        (final,) = match_store.list_round(check, tournament_id, 2)
        assert (final.slot_a_id, final.slot_b_id) == (top.winner_id, bottom.winner_id)
        assert final.status == MatchStatus.scheduled
        assert match_store.get_tournament(check, tournament_id).status == TournamentStatus.live


def test_result_write_requires_scheduled_status(session: Session, make_tournament):
    tournament = make_tournament("league", players=3)
    generate_schedule(session, tournament.id, rng=random.Random(0))
    match: Match = match_store.list_matches(session, tournament.id)[0]
    slot_a, slot_b = match.slot_a_id, match.slot_b_id
    submit_score(session, match.id, 21, 5)

    # A writer that validated against a stale read must not overwrite the result
    with pytest.raises(ConflictError):
        match_store.complete_match(session, match, 5, 21, slot_b)
    session.rollback()

    row = match_store.get_match(session, match.id)
    assert (row.score_a, row.score_b, row.winner_id) == (21, 5, slot_a)
