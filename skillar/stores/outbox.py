"""
Session Outbox
==============
When a finished session can't be written to the document store, the record is
appended to a local JSONL file instead of being dropped. `flush()` replays the
file into the session log and keeps only what still fails.

Records carry their id from the start, so a replay of something that did land
in the store is detected and skipped. One outbox instance is shared by every
front-end thread; reads, appends and the replay-then-rewrite all hold its lock.
"""

import logging
import threading
from pathlib import Path
from typing import List

from ..config import settings
from ..errors import SkillARError
from ..schemas import TrainingSession

logger = logging.getLogger(__name__)


class SessionOutbox:
    def __init__(self, path=None):
        self.path = Path(path or settings.OUTBOX_PATH)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def put(self, session: TrainingSession):
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(session.model_dump_json() + "\n")
        logger.warning("session %s queued in outbox %s", session.id, self.path)

    def pending(self) -> List[TrainingSession]:
        with self._lock:
            if not self.path.exists():
                return []
            with open(self.path, "r", encoding="utf-8") as f:
                return [TrainingSession.model_validate_json(line) for line in f if line.strip()]

    def _rewrite(self, sessions: List[TrainingSession]):
        if not sessions:
            self.path.unlink(missing_ok=True)
            return
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            for s in sessions:
                f.write(s.model_dump_json() + "\n")
        tmp.replace(self.path)

    def flush(self, session_log) -> int:
        """Replay queued sessions. Returns how many were delivered."""
        with self._lock:
            queued = self.pending()
            if not queued:
                return 0

            delivered, remaining = 0, []
            for session in queued:
                try:
                    if session.id and session_log.get(session.id) is not None:
                        delivered += 1
                        continue
                    session_log.append(session)
                    delivered += 1
                except SkillARError as e:
                    logger.warning("outbox replay of %s failed: %s", session.id, e)
                    remaining.append(session)

            self._rewrite(remaining)
        logger.info("outbox flushed: %d delivered, %d still pending", delivered, len(remaining))
        return delivered
