from __future__ import annotations

import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from skillar.auth.service import AuthService  # noqa: E402
from skillar.database import init_db, make_engine  # noqa: E402
from skillar.schemas import Role, SkillDraft  # noqa: E402
from skillar.services import Services  # noqa: E402
from skillar.stores import CatalogStore, LocalBlobStore, SessionLogStore, SessionOutbox  # noqa: E402

from fakes import ScriptedOracle  # noqa: E402


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def blobs(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs", public_base_url="http://testserver")


@pytest.fixture
def catalog(session_factory, blobs) -> CatalogStore:
    return CatalogStore(session_factory, blobs=blobs)


@pytest.fixture
def session_log(session_factory) -> SessionLogStore:
    return SessionLogStore(session_factory)


@pytest.fixture
def outbox(tmp_path: Path) -> SessionOutbox:
    return SessionOutbox(tmp_path / "outbox.jsonl")


@pytest.fixture
def auth(catalog, session_factory) -> AuthService:
    return AuthService(catalog, session_factory, secret="test-secret", ttl_minutes=30)


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def services(catalog, session_log, auth, outbox, oracle) -> Services:
    return Services(catalog=catalog, session_log=session_log, auth=auth, outbox=outbox, oracle=oracle)


@pytest.fixture
def make_skill(catalog):
    def _make(n_steps: int = 2, title: str = "Basic Electrical Wiring", category: str = "Electrical") -> str:
        draft = SkillDraft(
            title=title,
            description="Wire a switch safely",
            category=category,
            steps=[{"title": f"Step {i}", "instruction": f"Do thing {i}"} for i in range(1, n_steps + 1)],
        )
        return catalog.create_skill(draft, b"\x89PNG cover", filename="cover.png")

    return _make


@pytest.fixture
def make_user(catalog):
    def _make(uid: str = "u1", name: str = "Asha Devi", role: Role = Role.USER):
        return catalog.create_profile(uid, f"{uid}@example.com", name, role=role)

    return _make
