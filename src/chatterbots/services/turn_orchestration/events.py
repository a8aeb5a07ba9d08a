"""Structured turn-orchestration event models and validation helpers."""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Return current timestamp in milliseconds."""

    return int(time.time() * 1000)


class _EventBase(BaseModel):
    """Common base for all turn-orchestration events."""

    model_config = ConfigDict(extra="allow")
    type: str
    ts: int = Field(default_factory=now_ms, ge=0)


class TurnStateEvent(_EventBase):
    type: str = "turn_state"
    state: str
    previous: str
    speaker_id: str


class SessionConnectedEvent(_EventBase):
    type: str = "session_connected"
    persona_id: str
    voice: str


class SessionDisconnectedEvent(_EventBase):
    type: str = "session_disconnected"
    reason: str


class GreetingSentEvent(_EventBase):
    type: str = "greeting_sent"
    persona_id: str


class UserAudioStartedEvent(_EventBase):
    type: str = "user_audio_started"
    speaker_id: str


class UtteranceIgnoredEvent(_EventBase):
    type: str = "utterance_ignored"
    reason: str


class TurnAdvancedEvent(_EventBase):
    type: str = "turn_advanced"
    turn_index: int = Field(ge=0)
    speaker_id: str
    previous_speaker_id: str


class RelaySentEvent(_EventBase):
    type: str = "relay_sent"
    from_persona_id: str
    to_persona_id: str
    text: str


class RoundCompleteEvent(_EventBase):
    type: str = "round_complete"
    speaker_id: str


class ReconnectAbortedEvent(_EventBase):
    type: str = "reconnect_aborted"
    persona_id: str
    reason: str


class SessionErrorEvent(_EventBase):
    type: str = "session_error"
    stage: str
    error: str
    error_type: Optional[str] = None


TurnEventModel = Union[
    TurnStateEvent,
    SessionConnectedEvent,
    SessionDisconnectedEvent,
    GreetingSentEvent,
    UserAudioStartedEvent,
    UtteranceIgnoredEvent,
    TurnAdvancedEvent,
    RelaySentEvent,
    RoundCompleteEvent,
    ReconnectAbortedEvent,
    SessionErrorEvent,
]


_EVENT_MODEL_BY_TYPE: Dict[str, Type[_EventBase]] = {
    "turn_state": TurnStateEvent,
    "session_connected": SessionConnectedEvent,
    "session_disconnected": SessionDisconnectedEvent,
    "greeting_sent": GreetingSentEvent,
    "user_audio_started": UserAudioStartedEvent,
    "utterance_ignored": UtteranceIgnoredEvent,
    "turn_advanced": TurnAdvancedEvent,
    "relay_sent": RelaySentEvent,
    "round_complete": RoundCompleteEvent,
    "reconnect_aborted": ReconnectAbortedEvent,
    "session_error": SessionErrorEvent,
}


def normalize_turn_event(event: Union[_EventBase, Mapping[str, Any]]) -> Dict[str, Any]:
    """Validate and normalize one event into plain dict payload."""
    if isinstance(event, _EventBase):
        return event.model_dump(exclude_none=True)

    payload = dict(event)
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("turn event must include non-empty string field 'type'")

    model_cls = _EVENT_MODEL_BY_TYPE.get(event_type)
    if model_cls is None:
        raise ValueError(f"unsupported turn event type: {event_type}")

    return model_cls.model_validate(payload).model_dump(exclude_none=True)
