from datetime import datetime, timedelta

import pytest

from skillar.auth import Identity, resolve_context
from skillar.dashboard import build_dashboard, greeting_name
from skillar.schemas import TrainingSession

from fakes import BrokenCatalog


@pytest.mark.parametrize(
    "display_name,expected",
    [("Asha Devi", "Asha"), ("  Ravi  ", "Ravi"), ("", "Learner"), (None, "Learner")],
)
def test_greeting_name(display_name, expected) -> None:
    assert greeting_name(display_name) == expected


def _log(session_log, skill_id, score, minutes_ago, user_id="u1"):
    session_log.append(TrainingSession(
        user_id=user_id,
        skill_id=skill_id,
        completed_at=datetime(2025, 3, 1) - timedelta(minutes=minutes_ago),
        accuracy_score=score,
        feedback="",
    ))


def test_dashboard_splits_enrolled_and_available(catalog, session_log, make_user, make_skill) -> None:
    make_user()
    wiring = make_skill(title="Basic Electrical Wiring")
    grouting = make_skill(title="Tile Grouting")
    catalog.enroll("u1", wiring)
    catalog.enroll("u1", "deleted-skill")
    _log(session_log, wiring, 88, minutes_ago=5)
    _log(session_log, "deleted-skill", 40, minutes_ago=1)

    ctx = resolve_context(Identity("u1", "u1@example.com"), catalog)
    view = build_dashboard(ctx, catalog, session_log)

    assert view.error is None
    assert view.greeting_name == "Asha"
    assert [s.id for s in view.enrolled] == [wiring]
    assert [s.id for s in view.available] == [grouting]
    assert [(r.skill_title, r.session.accuracy_score) for r in view.recent_sessions] == [
        (None, 40),
        ("Basic Electrical Wiring", 88),
    ]
    assert view.completed_count == 2


def test_dashboard_recent_sessions_are_limited(catalog, session_log, make_user, make_skill) -> None:
    make_user()
    skill_id = make_skill()
    for i in range(8):
        _log(session_log, skill_id, 70, minutes_ago=i)

    ctx = resolve_context(Identity("u1", "u1@example.com"), catalog)
    assert len(build_dashboard(ctx, catalog, session_log).recent_sessions) == 5
    assert len(build_dashboard(ctx, catalog, session_log, limit=3).recent_sessions) == 3


def test_dashboard_without_profile(catalog, session_log, make_skill) -> None:
    make_skill()
    ctx = resolve_context(Identity("ghost", "g@example.com"), catalog)
    view = build_dashboard(ctx, catalog, session_log)
    assert view.greeting_name == "Learner"
    assert view.enrolled == []
    assert len(view.available) == 1


def test_dashboard_fetch_failure_is_reported(catalog, session_log, make_user) -> None:
    make_user()
    ctx = resolve_context(Identity("u1", "u1@example.com"), catalog)
    view = build_dashboard(ctx, BrokenCatalog(), session_log)
    assert view.error == "document store unreachable"
    assert view.greeting_name == "Asha"
    assert view.enrolled == []
