"""Wires the stores and collaborators together once per process (API, Streamlit app or CLI)."""

from dataclasses import dataclass, field

from .auth.service import AuthService
from .database import SessionLocal
from .engine.camera import FrameFeedCamera
from .engine.oracle import get_oracle
from .engine.registry import SessionRegistry
from .engine.training_session import TrainingSessionEngine
from .stores import CatalogStore, LocalBlobStore, SessionLogStore, SessionOutbox


@dataclass
class Services:
    catalog: CatalogStore
    session_log: SessionLogStore
    auth: AuthService
    outbox: SessionOutbox
    oracle: object
    registry: SessionRegistry = field(default_factory=SessionRegistry)

    @classmethod
    def build(cls, session_factory=SessionLocal, blobs: LocalBlobStore = None, outbox: SessionOutbox = None, oracle=None):
        catalog = CatalogStore(session_factory, blobs=blobs)
        return cls(
            catalog=catalog,
            session_log=SessionLogStore(session_factory),
            auth=AuthService(catalog, session_factory),
            outbox=outbox or SessionOutbox(),
            oracle=oracle or get_oracle(),
        )

    def training_engine(
        self,
        skill_id: str,
        user_id: str,
        camera=None,
        facing: str = "environment",
        camera_permission: bool = True,
    ) -> TrainingSessionEngine:
        """`camera_permission` is what the client reported for its camera; ignored when `camera` is given."""
        return TrainingSessionEngine(
            skill_id=skill_id,
            user_id=user_id,
            catalog=self.catalog,
            session_log=self.session_log,
            camera=camera or FrameFeedCamera(permission_granted=camera_permission),
            oracle=self.oracle,
            outbox=self.outbox,
            facing=facing,
        )
