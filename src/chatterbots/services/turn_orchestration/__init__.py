"""Turn orchestration primitives."""

from .base import (
    AudioChunk,
    CaptureSource,
    EventChannel,
    IntentToken,
    LiveSession,
    SessionConfig,
    Subscription,
)
from .capture_gate import CaptureGate
from .dry_run import DryRunLiveSession, SilentCaptureSource
from .events import normalize_turn_event
from .orchestrator import TurnOrchestrator, TurnState
from .session_config import SessionConfigBuilder

__all__ = [
    "AudioChunk",
    "CaptureSource",
    "EventChannel",
    "IntentToken",
    "LiveSession",
    "SessionConfig",
    "Subscription",
    "CaptureGate",
    "DryRunLiveSession",
    "SilentCaptureSource",
    "normalize_turn_event",
    "TurnOrchestrator",
    "TurnState",
    "SessionConfigBuilder",
]
