"""
Training Session Engine
=======================
Walks one user through one skill's steps:

    LOADING ──skill found──▶ STEP_ACTIVE(i) ──verify──▶ ANALYZING(i) ──oracle──▶ STEP_RESULT(i)
       │                         ▲                                                  │
       └──missing / fetch error  └───────────── failure (retry same step) ◀─────────┤
              ▼                                                                     │ advance
            ERROR                    STEP_ACTIVE(i+1) ◀──── success ────────────────┤
                                     COMPLETE       ◀──── success on last step ─────┘

Exactly one TrainingSession is written, on reaching COMPLETE. Closing the engine
earlier writes nothing. The camera is acquired after the skill loads and released
on COMPLETE or on close, whatever the state; retry acquires it again. A
verification that resolves after close() or a reset is discarded.

Usage:
    async with TrainingSessionEngine(skill_id, user_id, catalog, log, camera, oracle) as engine:
        await engine.verify()
        await engine.advance()
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from ..errors import FetchError, InvalidTransition, PermissionDenied, WriteError
from ..schemas import Skill, SkillStep, TrainingSession
from .oracle import StepContext, Verification

logger = logging.getLogger(__name__)

SKILL_NOT_FOUND = "Skill not found"
STEP_VERIFIED = "Excellent! Step verified. Accuracy: {score}%"
STEP_REJECTED = "Incorrect technique detected. Please adjust your angle and try again."
VERIFY_FAILED = "Verification is unavailable right now. Please try again."
MASTERED = "Great job! You've mastered this skill."
NEEDS_PRACTICE = "Good effort, but needs more practice."


class Phase(str, Enum):
    LOADING = "loading"
    STEP_ACTIVE = "step_active"
    ANALYZING = "analyzing"
    STEP_RESULT = "step_result"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class Feedback:
    kind: str  # success | error | neutral
    message: str


def final_score(scores: List[int]) -> int:
    """Mean of the step scores, rounded half up. 0 when there are none."""
    if not scores:
        return 0
    return int(math.floor(sum(scores) / len(scores) + 0.5))


def completion_feedback(score: int) -> str:
    return MASTERED if score > 80 else NEEDS_PRACTICE


class SessionView(BaseModel):
    """Snapshot of an engine for rendering."""

    phase: Phase
    skill_id: str
    skill_title: Optional[str] = None
    step_index: int = 0
    total_steps: int = 0
    step_title: Optional[str] = None
    step_instruction: Optional[str] = None
    feedback_kind: Optional[str] = None
    feedback_message: Optional[str] = None
    camera_active: bool = False
    camera_error: Optional[str] = None
    can_verify: bool = False
    scores: List[int] = []
    attempts: int = 0
    accuracy_score: Optional[int] = None
    result_feedback: Optional[str] = None
    saved: bool = False
    error: Optional[str] = None


class TrainingSessionEngine:
    def __init__(
        self,
        skill_id: str,
        user_id: str,
        catalog,
        session_log,
        camera,
        oracle,
        outbox=None,
        facing: str = "environment",
    ):
        self.skill_id = skill_id
        self.user_id = user_id
        self.catalog = catalog
        self.session_log = session_log
        self.camera = camera
        self.oracle = oracle
        self.outbox = outbox
        self.facing = facing

        self.camera_error: Optional[str] = None
        self._stream = None
        self._closed = False
        self._generation = 0
        self._reset()

    def _reset(self):
        self._generation += 1
        self.phase = Phase.LOADING
        self.skill: Optional[Skill] = None
        self.step_index = 0
        self.scores: List[int] = []
        self.attempts = 0
        self.feedback: Optional[Feedback] = None
        self.last_verification: Optional[Verification] = None
        self.error: Optional[str] = None
        self.result: Optional[TrainingSession] = None
        self.saved = False
        self._pending_score: Optional[int] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # ── State queries ──────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def total_steps(self) -> int:
        return len(self.skill.steps) if self.skill else 0

    @property
    def current_step(self) -> Optional[SkillStep]:
        if self.skill is None or self.phase in (Phase.COMPLETE, Phase.ERROR):
            return None
        return self.skill.steps[self.step_index]

    @property
    def camera_active(self) -> bool:
        return self._stream is not None

    @property
    def can_verify(self) -> bool:
        return not self._closed and self.phase == Phase.STEP_ACTIVE and self.camera_active

    # ── Transitions ────────────────────────────────────────────────────────

    def _fail(self, message: str):
        self.phase = Phase.ERROR
        self.error = message
        self.feedback = Feedback("error", message)

    def _release_camera(self):
        if self._stream is not None:
            stream, self._stream = self._stream, None
            self.camera.release(stream)

    def _acquire_camera(self):
        try:
            self._stream = self.camera.acquire_stream(self.facing)
        except PermissionDenied as e:
            logger.warning("camera permission denied for user %s", self.user_id)
            self.camera_error = str(e)
            self.feedback = Feedback("error", self.camera_error)

    async def start(self):
        """LOADING → STEP_ACTIVE(0), or ERROR if the skill can't be loaded."""
        if self._closed:
            raise InvalidTransition("Session is closed")
        if self.phase != Phase.LOADING:
            self._reset()

        try:
            skill = self.catalog.get_skill(self.skill_id)
        except FetchError as e:
            logger.error("could not load skill %s: %s", self.skill_id, e)
            self._fail(f"Could not load skill: {e}")
            return
        if skill is None or not skill.steps:
            self._fail(SKILL_NOT_FOUND)
            return

        self.skill = skill
        if self._stream is None and self.camera_error is None:
            self._acquire_camera()
        self.phase = Phase.STEP_ACTIVE
        logger.info("user %s started '%s' (%d steps)", self.user_id, skill.title, len(skill.steps))

    async def verify(self) -> Optional[Verification]:
        """
        STEP_ACTIVE(i) → ANALYZING(i) → STEP_RESULT(i) on success, back to STEP_ACTIVE(i) on failure.

        Returns None if the engine was closed or reset while the oracle was working.
        """
        if not self.can_verify:
            reason = self.camera_error if self.camera_error else f"state is {self.phase.value}"
            raise InvalidTransition(f"Cannot verify now: {reason}")

        generation = self._generation
        step = self.current_step
        frame = self.camera.capture_frame(self._stream)
        self.phase = Phase.ANALYZING
        self.feedback = None

        context = StepContext(
            skill_id=self.skill.id,
            skill_title=self.skill.title,
            step_index=self.step_index,
            step_title=step.title,
            instruction=step.instruction,
        )
        try:
            verification = await self.oracle.verify(frame, context)
        except Exception:
            if generation != self._generation:
                logger.info("discarding failed verification: session torn down")
                return None
            self.phase = Phase.STEP_ACTIVE
            self.feedback = Feedback("error", VERIFY_FAILED)
            raise

        if generation != self._generation:
            logger.info("discarding verification for step %d: session torn down", context.step_index + 1)
            return None

        self.attempts += 1
        self.last_verification = verification
        if verification.passed:
            self._pending_score = verification.score
            self.feedback = Feedback("success", STEP_VERIFIED.format(score=verification.score))
            self.phase = Phase.STEP_RESULT
        else:
            self.feedback = Feedback("error", STEP_REJECTED)
            self.phase = Phase.STEP_ACTIVE
        return verification

    async def advance(self):
        """STEP_RESULT(i, success) → STEP_ACTIVE(i+1), or COMPLETE after the last step."""
        if self.phase != Phase.STEP_RESULT:
            raise InvalidTransition(f"Cannot advance while {self.phase.value}")

        self.scores.append(self._pending_score)
        self._pending_score = None
        self.feedback = None
        if self.step_index < self.total_steps - 1:
            self.step_index += 1
            self.phase = Phase.STEP_ACTIVE
        else:
            self._complete()

    def _complete(self):
        score = final_score(self.scores)
        self.result = TrainingSession(
            id=str(uuid.uuid4()),
            user_id=self.user_id,
            skill_id=self.skill.id,
            completed_at=datetime.now(timezone.utc),
            accuracy_score=score,
            feedback=completion_feedback(score),
            completed=True,
        )
        self.phase = Phase.COMPLETE
        self._release_camera()

        try:
            self.session_log.append(self.result)
        except WriteError as e:
            logger.error("could not save session %s: %s", self.result.id, e)
            if self.outbox is not None:
                self.outbox.put(self.result)
            return

        self.saved = True
        if self.outbox is not None:
            self.outbox.flush(self.session_log)

    async def retry(self):
        """COMPLETE → LOADING → ... : run the same module again from the first step."""
        if self.phase != Phase.COMPLETE:
            raise InvalidTransition(f"Cannot retry while {self.phase.value}")
        self._reset()
        await self.start()

    async def close(self):
        """Leave the session. Releases the camera; unfinished progress is dropped."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        if self.phase not in (Phase.COMPLETE, Phase.ERROR):
            logger.info("user %s left '%s' at step %d without finishing",
                        self.user_id, self.skill_id, self.step_index + 1)
        self._release_camera()

    # ── Rendering ──────────────────────────────────────────────────────────

    def view(self) -> SessionView:
        step = self.current_step
        return SessionView(
            phase=self.phase,
            skill_id=self.skill_id,
            skill_title=self.skill.title if self.skill else None,
            step_index=self.step_index,
            total_steps=self.total_steps,
            step_title=step.title if step else None,
            step_instruction=step.instruction if step else None,
            feedback_kind=self.feedback.kind if self.feedback else None,
            feedback_message=self.feedback.message if self.feedback else None,
            camera_active=self.camera_active,
            camera_error=self.camera_error,
            can_verify=self.can_verify,
            scores=list(self.scores),
            attempts=self.attempts,
            accuracy_score=self.result.accuracy_score if self.result else None,
            result_feedback=self.result.feedback if self.result else None,
            saved=self.saved,
            error=self.error,
        )
