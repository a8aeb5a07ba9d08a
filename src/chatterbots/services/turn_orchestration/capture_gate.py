"""Gate between microphone capture and the live session."""

from __future__ import annotations

import logging
from typing import List

from .base import AudioChunk, CaptureSource, Subscription
from .orchestrator import TurnOrchestrator

logger = logging.getLogger(__name__)


class CaptureGate:
    """
    Forwards microphone chunks only while the human may speak.

    The capture source runs only while the session is open, the human holds
    the floor and the gate is unmuted; otherwise it is stopped outright, so
    nothing captured in one turn can leak into the next.
    """

    def __init__(self, source: CaptureSource, orchestrator: TurnOrchestrator):
        self.source = source
        self.orchestrator = orchestrator
        self.muted = False
        self.forwarded_chunks = 0
        self.dropped_chunks = 0
        self._subscriptions: List[Subscription] = []

    def attach(self) -> None:
        """Subscribe to capture data and orchestrator changes."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self.source.data.subscribe(self.on_chunk),
            self.orchestrator.connection_changed.subscribe(self._on_orchestrator_change),
            self.orchestrator.events.subscribe(self._on_turn_event),
        ]
        self.sync()

    def detach(self) -> None:
        """Unsubscribe everything and release the microphone."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self.source.stop()

    @property
    def should_capture(self) -> bool:
        return self.orchestrator.accepts_user_audio and not self.muted

    def set_muted(self, muted: bool) -> bool:
        """Mute or unmute; idempotent. Returns the resulting muted flag."""
        muted = bool(muted)
        if muted != self.muted:
            self.muted = muted
            logger.info(f"Microphone {'muted' if muted else 'unmuted'}")
        self.sync()
        return self.muted

    def toggle_mute(self) -> bool:
        return self.set_muted(not self.muted)

    def sync(self) -> None:
        """Start or stop the capture source to match the gate conditions."""
        if self.should_capture:
            if not self.source.is_started:
                self.source.start()
        elif self.source.is_started:
            self.source.stop()

    async def on_chunk(self, chunk: AudioChunk) -> bool:
        """Forward one chunk if the gate is open; returns whether it was forwarded."""
        if not self.should_capture:
            self.dropped_chunks += 1
            return False

        # Claim the floor before awaiting so the reply is attributed to this utterance.
        self.orchestrator.mark_user_speaking()
        try:
            await self.orchestrator.session.send_realtime_input([chunk])
        except Exception as e:
            logger.error(f"Failed to forward audio chunk: {e}")
            self.dropped_chunks += 1
            return False
        self.forwarded_chunks += 1
        return True

    def snapshot(self) -> dict:
        return {
            "muted": self.muted,
            "capturing": self.source.is_started,
            "forwarded_chunks": self.forwarded_chunks,
            "dropped_chunks": self.dropped_chunks,
        }

    def _on_orchestrator_change(self, _connected: bool) -> None:
        self.sync()

    def _on_turn_event(self, event: dict) -> None:
        if event.get("type") == "turn_state":
            self.sync()
