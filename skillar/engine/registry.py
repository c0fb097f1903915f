import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..config import settings
from .training_session import TrainingSessionEngine

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    user_id: str
    engine: TrainingSessionEngine
    last_seen: float = 0.0


class SessionRegistry:
    """
    Live training engines for the HTTP API, keyed by an opaque handle and owned by one user.

    Every lookup refreshes the handle's activity time. Handles left alone for longer than
    `idle_timeout` seconds (a closed tab that never sent DELETE) are closed by `close_idle()`,
    which the app runs periodically and on every `open()`.
    """

    def __init__(self, idle_timeout: float = None, clock: Callable[[], float] = time.monotonic):
        self.idle_timeout = settings.TRAINING_IDLE_TIMEOUT_SECONDS if idle_timeout is None else idle_timeout
        self._clock = clock
        self._engines: Dict[str, _Entry] = {}

    def __len__(self):
        return len(self._engines)

    async def open(self, engine: TrainingSessionEngine) -> str:
        await self.close_idle()
        handle = uuid.uuid4().hex
        self._engines[handle] = _Entry(engine.user_id, engine, self._clock())
        await engine.start()
        return handle

    def get(self, handle: str, user_id: str) -> Optional[TrainingSessionEngine]:
        entry = self._engines.get(handle)
        if entry is None or entry.user_id != user_id:
            return None
        entry.last_seen = self._clock()
        return entry.engine

    async def close(self, handle: str, user_id: str) -> bool:
        entry = self._engines.get(handle)
        if entry is None or entry.user_id != user_id:
            return False
        del self._engines[handle]
        await entry.engine.close()
        return True

    async def close_idle(self) -> int:
        """Close engines idle for longer than the timeout. Returns how many were closed."""
        cutoff = self._clock() - self.idle_timeout
        stale = [h for h, entry in self._engines.items() if entry.last_seen < cutoff]
        for handle in stale:
            entry = self._engines.pop(handle)
            await entry.engine.close()
        if stale:
            logger.info("closed %d idle training sessions", len(stale))
        return len(stale)

    async def close_all(self):
        engines = [entry.engine for entry in self._engines.values()]
        self._engines.clear()
        for engine in engines:
            await engine.close()
        if engines:
            logger.info("closed %d training sessions", len(engines))
