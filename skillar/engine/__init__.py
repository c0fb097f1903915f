from .camera import CameraCapture, FrameFeedCamera, FrameStream
from .oracle import (
    Outcome, Verification, StepContext, VerificationOracle,
    SimulatedOracle, VisionModelOracle, get_oracle,
)
from .training_session import Phase, SessionView, TrainingSessionEngine, final_score
from .registry import SessionRegistry

__all__ = [
    "CameraCapture", "FrameFeedCamera", "FrameStream",
    "Outcome", "Verification", "StepContext", "VerificationOracle",
    "SimulatedOracle", "VisionModelOracle", "get_oracle",
    "Phase", "SessionView", "TrainingSessionEngine", "final_score",
    "SessionRegistry",
]
