"""Contracts between the turn orchestrator and its external collaborators."""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Set, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
EventHandler = Callable[[T], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class SessionConfig:
    """Persona parameters bound when a streaming session is opened."""

    persona_id: str
    voice: str
    system_instruction: str
    response_modalities: Tuple[str, ...] = ("AUDIO",)


@dataclass(frozen=True)
class AudioChunk:
    """One encoded microphone chunk as delivered by the capture source."""

    data: str
    mime_type: str = "audio/pcm;rate=16000"


class Subscription:
    """Handle returned by EventChannel.subscribe; unsubscribe is idempotent."""

    def __init__(self, channel: "EventChannel", handler: EventHandler):
        self._channel = channel
        self._handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._channel.unsubscribe(self._handler)
            self.active = False


class EventChannel(Generic[T]):
    """Explicit publish/subscribe point replacing ad-hoc callbacks."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[EventHandler] = []
        self._tasks: Set[asyncio.Future] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def subscribe(self, handler: EventHandler) -> Subscription:
        self._handlers.append(handler)
        return Subscription(self, handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    async def emit(self, payload: T) -> None:
        """Deliver payload to every handler in subscription order."""
        for handler in list(self._handlers):
            result = handler(payload)
            if inspect.isawaitable(result):
                await result

    def publish(self, payload: T) -> None:
        """Deliver payload without suspending; async handlers run as tasks."""
        for handler in list(self._handlers):
            result = handler(payload)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Handler on {self.name} failed: {error}", exc_info=error)


@dataclass
class IntentToken:
    """Cooperative cancellation token for one connection intent."""

    version: int
    is_cancelled: bool = False
    reason: str = "superseded"

    def cancel(self, reason: Optional[str] = None) -> None:
        """Mark the token as cancelled with an optional reason."""
        self.is_cancelled = True
        if reason:
            self.reason = str(reason).strip() or self.reason


class LiveSession(ABC):
    """Bidirectional streaming session to the inference backend.

    Persona configuration is bound at connect time and cannot change on an
    open session. Implementations publish each completed textual response on
    ``completed_text``.
    """

    def __init__(self) -> None:
        self.completed_text: EventChannel[str] = EventChannel("completed_text")

    @abstractmethod
    async def connect(self, config: SessionConfig) -> None:
        """Open the session with the given persona configuration."""
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the session; closing an already closed session is a no-op."""
        raise NotImplementedError

    @abstractmethod
    async def send(self, text: str, end_of_turn: bool = True) -> None:
        """Send a text turn."""
        raise NotImplementedError

    @abstractmethod
    async def send_realtime_input(self, chunks: Sequence[AudioChunk]) -> None:
        """Push raw audio chunks into the open session."""
        raise NotImplementedError


class CaptureSource(ABC):
    """Microphone capture; publishes encoded chunks on ``data`` while started."""

    def __init__(self) -> None:
        self.data: EventChannel[AudioChunk] = EventChannel("capture_data")

    @property
    @abstractmethod
    def is_started(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def start(self) -> None:
        """Begin capturing; idempotent."""
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and drop anything buffered; idempotent."""
        raise NotImplementedError
