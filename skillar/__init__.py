"""SkillAR Bharat: vocational skill training with step-by-step camera verification."""

__version__ = "0.1.0"
