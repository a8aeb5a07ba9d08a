"""Turn-taking orchestrator multiplexing one live session across personas."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from ...config import DEFAULT_GREETING_PROMPT
from ...models.persona import Persona
from ..rotation_store import RotationStore
from .base import EventChannel, IntentToken, LiveSession, Subscription
from .events import (
    GreetingSentEvent,
    ReconnectAbortedEvent,
    RelaySentEvent,
    RoundCompleteEvent,
    SessionConnectedEvent,
    SessionDisconnectedEvent,
    SessionErrorEvent,
    TurnAdvancedEvent,
    TurnStateEvent,
    UserAudioStartedEvent,
    UtteranceIgnoredEvent,
    normalize_turn_event,
)
from .log_utils import truncate_log_text
from .session_config import SessionConfigBuilder

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Whose turn it is, as far as the live session is concerned."""

    IDLE = "idle"
    USER_TURN = "user_turn"
    USER_SPEAKING = "user_speaking"
    AGENT_RELAY = "agent_relay"
    ROUND_COMPLETE = "round_complete"


USER_AUDIO_STATES = (TurnState.USER_TURN, TurnState.USER_SPEAKING)
AGENT_REPLY_STATES = (TurnState.USER_SPEAKING, TurnState.AGENT_RELAY)


class TurnOrchestrator:
    """
    Owns the turn state machine and the singleton live session.

    Persona configuration is bound when the session opens, so every change
    of speaker tears the session down and opens it again. Each connection
    intent carries an IntentToken that is checked after every await; an
    explicit disconnect cancels the token, which keeps a stale reconnect
    from resurrecting the session.

    Connect and reconnect sequences run one at a time under a session lock,
    so a new connect waits until a stale sequence has closed whatever it
    opened. Disconnect takes effect without the lock.
    """

    def __init__(
        self,
        rotation: RotationStore,
        session: LiveSession,
        config_builder: SessionConfigBuilder,
        *,
        greeting_prompt: str = DEFAULT_GREETING_PROMPT,
        event_log_size: int = 200,
    ):
        self.rotation = rotation
        self.session = session
        self.config_builder = config_builder
        self.greeting_prompt = greeting_prompt

        self.state = TurnState.IDLE
        self.connected = False
        self.pending_text: Optional[str] = None

        self.events: EventChannel[Dict[str, Any]] = EventChannel("turn_events")
        self.connection_changed: EventChannel[bool] = EventChannel("connection_changed")
        self.event_log: Deque[Dict[str, Any]] = deque(maxlen=event_log_size)

        self._intent = IntentToken(version=0, is_cancelled=True, reason="initial")
        self._transition_task: Optional[asyncio.Task] = None
        self._session_lock = asyncio.Lock()
        self._subscription: Optional[Subscription] = None

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self) -> None:
        """Subscribe to completed text from the session."""
        if self._subscription is None:
            self._subscription = self.session.completed_text.subscribe(self._on_completed_text)

    async def aclose(self) -> None:
        """Disconnect, unsubscribe and settle any in-flight transition."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self.wants_connection:
            await self.disconnect(reason="shutdown")
        task = self._transition_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> "TurnOrchestrator":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Observable state

    @property
    def is_user_turn(self) -> bool:
        return self.state is TurnState.USER_TURN

    @property
    def wants_connection(self) -> bool:
        return self.state is not TurnState.IDLE

    @property
    def accepts_user_audio(self) -> bool:
        """Human audio may flow only on an open session during the human's part of the round."""
        return self.connected and self.state in USER_AUDIO_STATES

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "connected": self.connected,
            "is_user_turn": self.is_user_turn,
            "turn_index": self.rotation.turn_index,
            "speaker_id": self.rotation.speaker.id,
            "has_pending_text": self.pending_text is not None,
        }

    def recent_events(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        events = list(self.event_log)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    # ------------------------------------------------------------------
    # Human actions

    async def toggle_connection(self) -> bool:
        """Connect button: returns True when the orchestrator now wants a connection."""
        if self.wants_connection:
            await self.disconnect(reason="user")
            return False
        return await self.connect()

    async def connect(self) -> bool:
        """Open the session for the current speaker and prime a greeting."""
        if self.state is not TurnState.IDLE:
            logger.debug(f"Ignoring connect while {self.state.value}")
            return False

        token = self._new_intent("connect")
        self.pending_text = None
        self._set_state(TurnState.USER_TURN)

        async with self._session_lock:
            if token.is_cancelled:
                return False

            speaker = self.rotation.speaker
            if not await self._open_session(token, speaker, on_open=TurnState.USER_TURN):
                return False

            try:
                await self.session.send(self.greeting_prompt, end_of_turn=True)
            except Exception as e:
                self._record_error("greeting", e)
                return not token.is_cancelled

            if token.is_cancelled:
                return False
            self._record(GreetingSentEvent(persona_id=speaker.id))
            return True

    async def disconnect(self, reason: str = "user") -> None:
        """Close the session immediately; preempts any in-flight relay."""
        self._new_intent(reason)
        self.pending_text = None
        if self.state is TurnState.IDLE and not self.connected:
            return

        self._set_connected(False)
        self._set_state(TurnState.IDLE)
        try:
            await self.session.disconnect()
        except Exception as e:
            self._record_error("disconnect", e)
        self._record(SessionDisconnectedEvent(reason=reason))
        logger.info(f"Session disconnected ({reason})")

    # ------------------------------------------------------------------
    # Session / capture events

    def mark_user_speaking(self) -> bool:
        """First admitted audio chunk of a human utterance."""
        if self.state is not TurnState.USER_TURN:
            return False
        self._set_state(TurnState.USER_SPEAKING)
        self._record(UserAudioStartedEvent(speaker_id=self.rotation.speaker.id))
        return True

    def receive_completed_text(self, text: str) -> Optional[asyncio.Task]:
        """
        React to a completed utterance from the session.

        The turn decision (advance, round check) is made synchronously at
        delivery time; the reconnect and relay run as a task, returned so
        callers can await it.

        Returns:
            The transition task, or None when the utterance was ignored
        """
        self.pending_text = text

        if not self.connected:
            self._ignore_pending("not_connected")
            return None
        if self.state not in AGENT_REPLY_STATES:
            self._ignore_pending(self.state.value)
            return None

        utterance = self.pending_text
        self.pending_text = None

        previous = self.rotation.speaker
        next_index = self.rotation.advance()
        speaker = self.rotation.speaker
        self._record(
            TurnAdvancedEvent(
                turn_index=next_index,
                speaker_id=speaker.id,
                previous_speaker_id=previous.id,
            )
        )

        token = self._new_intent("turn_advanced")
        self._set_connected(False)

        if next_index == 0:
            self._set_state(TurnState.ROUND_COMPLETE)
            self._record(RoundCompleteEvent(speaker_id=speaker.id))
            logger.info(f"Round complete, returning control to the user with {speaker.id}")
            coro = self._reconnect(token, speaker, relay_text=None, previous=previous)
        else:
            self._set_state(TurnState.AGENT_RELAY)
            logger.info(
                f"Relaying {previous.id} -> {speaker.id}: {truncate_log_text(utterance)}"
            )
            coro = self._reconnect(token, speaker, relay_text=utterance, previous=previous)

        task = asyncio.get_running_loop().create_task(coro)
        self._transition_task = task
        return task

    async def wait_for_transition(self) -> None:
        """Await the most recent reconnect/relay transition, if any."""
        task = self._transition_task
        if task is not None and not task.done():
            await task

    # ------------------------------------------------------------------
    # Internals

    def _on_completed_text(self, text: str) -> None:
        self.receive_completed_text(text)

    def _ignore_pending(self, reason: str) -> None:
        logger.debug(f"Ignoring completed utterance ({reason}): {truncate_log_text(self.pending_text)}")
        self.pending_text = None
        self._record(UtteranceIgnoredEvent(reason=reason))

    def _new_intent(self, reason: str) -> IntentToken:
        self._intent.cancel(reason)
        self._intent = IntentToken(version=self._intent.version + 1)
        return self._intent

    async def _reconnect(
        self,
        token: IntentToken,
        speaker: Persona,
        *,
        relay_text: Optional[str],
        previous: Persona,
    ) -> None:
        async with self._session_lock:
            await self._run_reconnect(token, speaker, relay_text=relay_text, previous=previous)

    async def _run_reconnect(
        self,
        token: IntentToken,
        speaker: Persona,
        *,
        relay_text: Optional[str],
        previous: Persona,
    ) -> None:
        if token.is_cancelled:
            self._record(ReconnectAbortedEvent(persona_id=speaker.id, reason=token.reason))
            return

        try:
            await self.session.disconnect()
        except Exception as e:
            self._fail(token, "disconnect", e)
            return
        if token.is_cancelled:
            self._record(ReconnectAbortedEvent(persona_id=speaker.id, reason=token.reason))
            return

        on_open = TurnState.USER_TURN if relay_text is None else TurnState.AGENT_RELAY
        if not await self._open_session(token, speaker, on_open=on_open):
            return
        if relay_text is None:
            return

        try:
            await self.session.send(relay_text, end_of_turn=True)
        except Exception as e:
            self._record_error("relay", e)
            if not token.is_cancelled:
                # Nobody will answer the lost relay, so the human gets the floor.
                self._set_state(TurnState.USER_TURN)
            return

        if token.is_cancelled:
            return
        self._record(
            RelaySentEvent(
                from_persona_id=previous.id,
                to_persona_id=speaker.id,
                text=truncate_log_text(relay_text, max_chars=2000),
            )
        )

    async def _open_session(self, token: IntentToken, speaker: Persona, *, on_open: TurnState) -> bool:
        config = self.config_builder.build(speaker, self.rotation.active)
        try:
            await self.session.connect(config)
        except Exception as e:
            self._fail(token, "connect", e)
            return False

        if token.is_cancelled:
            self._record(ReconnectAbortedEvent(persona_id=speaker.id, reason=token.reason))
            # Withdrawn while connecting. The lock is still held, so this session is ours to close.
            try:
                await self.session.disconnect()
            except Exception as e:
                self._record_error("disconnect", e)
            return False

        self._set_state(on_open)
        self._set_connected(True)
        self._record(SessionConnectedEvent(persona_id=speaker.id, voice=config.voice))
        logger.info(f"Session connected as {speaker.id} (voice={config.voice})")
        return True

    def _fail(self, token: IntentToken, stage: str, error: Exception) -> None:
        self._record_error(stage, error)
        if token.is_cancelled:
            return
        token.cancel("session_error")
        self.pending_text = None
        self._set_connected(False)
        self._set_state(TurnState.IDLE)

    def _record_error(self, stage: str, error: Exception) -> None:
        logger.error(f"Live session {stage} failed: {error}")
        self._record(
            SessionErrorEvent(
                stage=stage,
                error=str(error),
                error_type=error.__class__.__name__,
            )
        )

    def _set_state(self, state: TurnState) -> None:
        if state is self.state:
            return
        previous = self.state
        self.state = state
        self._record(
            TurnStateEvent(
                state=state.value,
                previous=previous.value,
                speaker_id=self.rotation.speaker.id,
            )
        )
        logger.debug(f"Turn state {previous.value} -> {state.value}")

    def _set_connected(self, connected: bool) -> None:
        if connected == self.connected:
            return
        self.connected = connected
        self.connection_changed.publish(connected)

    def _record(self, event) -> Dict[str, Any]:
        payload = normalize_turn_event(event)
        self.event_log.append(payload)
        self.events.publish(payload)
        return payload
