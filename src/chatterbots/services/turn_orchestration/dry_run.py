"""Log-only collaborators for running the control surface without a streaming backend."""

import logging
from typing import List, Optional, Sequence

from .base import AudioChunk, CaptureSource, LiveSession, SessionConfig
from .log_utils import truncate_log_text

logger = logging.getLogger(__name__)


class DryRunLiveSession(LiveSession):
    """Accepts every call, logs it, and never produces a response on its own."""

    def __init__(self):
        super().__init__()
        self.config: Optional[SessionConfig] = None
        self.is_open = False
        self.sent_texts: List[str] = []
        self.audio_chunk_count = 0

    async def connect(self, config: SessionConfig) -> None:
        self.config = config
        self.is_open = True
        logger.info(f"[dry-run] connect persona={config.persona_id} voice={config.voice}")

    async def disconnect(self) -> None:
        if self.is_open:
            logger.info("[dry-run] disconnect")
        self.is_open = False

    async def send(self, text: str, end_of_turn: bool = True) -> None:
        self.sent_texts.append(text)
        logger.info(f"[dry-run] send end_of_turn={end_of_turn}: {truncate_log_text(text)}")

    async def send_realtime_input(self, chunks: Sequence[AudioChunk]) -> None:
        self.audio_chunk_count += len(chunks)

    async def inject_completed_text(self, text: str) -> None:
        """Pretend the backend finished an utterance."""
        await self.completed_text.emit(text)


class SilentCaptureSource(CaptureSource):
    """Capture source with no microphone behind it; audio can be pushed in by hand."""

    def __init__(self, mime_type: str = "audio/pcm;rate=16000"):
        super().__init__()
        self.mime_type = mime_type
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._started = True

    def stop(self) -> None:
        self._started = False

    async def push(self, data: str) -> bool:
        """Deliver one encoded chunk if capturing; returns whether it was delivered."""
        if not self._started:
            return False
        await self.data.emit(AudioChunk(data=data, mime_type=self.mime_type))
        return True
