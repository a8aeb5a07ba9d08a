"""Shared pytest fixtures for all tests."""

import asyncio
import shutil
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import pytest

from chatterbots.models.persona import Persona, PersonaOrigin
from chatterbots.services.blob_store import BlobStore
from chatterbots.services.turn_orchestration import (
    AudioChunk,
    CaptureSource,
    LiveSession,
    SessionConfig,
)


def _create_workspace_temp_dir(kind: str) -> Path:
    """Create a temporary directory under repository-local .pytest_work."""
    repo_root = Path(__file__).resolve().parents[1]
    root_dir = repo_root / ".pytest_work" / kind
    root_dir.mkdir(parents=True, exist_ok=True)
    temp_dir = root_dir / f"{kind}_{uuid.uuid4().hex[:8]}"
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


class MemoryBlobStore(BlobStore):
    """In-memory blob store that records every save."""

    def __init__(self, initial: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.data: Dict[str, List[Dict[str, Any]]] = dict(initial or {})
        self.save_count = 0

    async def load(self, key: str) -> List[Dict[str, Any]]:
        return [dict(item) for item in self.data.get(key, [])]

    async def save(self, key: str, items: List[Dict[str, Any]]) -> None:
        self.save_count += 1
        self.data[key] = [dict(item) for item in items]


class FakeLiveSession(LiveSession):
    """Records calls; connect can be held open and any stage can be made to fail."""

    def __init__(self):
        super().__init__()
        self.calls: List[Tuple[str, Any]] = []
        self.configs: List[SessionConfig] = []
        self.sent: List[Tuple[str, bool]] = []
        self.audio: List[AudioChunk] = []
        self.is_open = False
        self.connect_gate: Optional[asyncio.Event] = None
        self.held_connects: List[asyncio.Event] = []
        self.fail_on: Set[str] = set()

    async def connect(self, config: SessionConfig) -> None:
        self.calls.append(("connect", config.persona_id))
        if "connect" in self.fail_on:
            raise ConnectionError("connect refused")
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.held_connects:
            await self.held_connects.pop(0).wait()
        self.configs.append(config)
        self.is_open = True

    async def disconnect(self) -> None:
        self.calls.append(("disconnect", None))
        if "disconnect" in self.fail_on:
            raise ConnectionError("disconnect failed")
        self.is_open = False

    async def send(self, text: str, end_of_turn: bool = True) -> None:
        self.calls.append(("send", text))
        if "send" in self.fail_on:
            raise ConnectionError("send failed")
        self.sent.append((text, end_of_turn))

    async def send_realtime_input(self, chunks: Sequence[AudioChunk]) -> None:
        if "audio" in self.fail_on:
            raise ConnectionError("audio rejected")
        self.audio.extend(chunks)

    def hold_next_connect(self) -> asyncio.Event:
        """Hold only the next connect call until the returned event is set."""
        gate = asyncio.Event()
        self.held_connects.append(gate)
        return gate

    def connected_personas(self) -> List[str]:
        return [value for name, value in self.calls if name == "connect"]


class FakeCaptureSource(CaptureSource):
    """Capture source whose chunks are delivered by the test."""

    def __init__(self):
        super().__init__()
        self._started = False
        self.start_count = 0
        self.stop_count = 0

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        if not self._started:
            self.start_count += 1
        self._started = True

    def stop(self) -> None:
        if self._started:
            self.stop_count += 1
        self._started = False

    async def deliver(self, data: str = "AAAA") -> None:
        """Emit a chunk even when stopped, like a late buffer flush."""
        await self.data.emit(AudioChunk(data=data))


@pytest.fixture
def tmp_path():
    """Workspace-local replacement for pytest's tmp_path fixture."""
    temp_dir = _create_workspace_temp_dir("tmp_path")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def temp_state_dir():
    """Create temporary directory for persisted state files."""
    temp_dir = _create_workspace_temp_dir("state")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def memory_blob_store():
    return MemoryBlobStore()


@pytest.fixture
def live_session():
    return FakeLiveSession()


@pytest.fixture
def capture_source():
    return FakeCaptureSource()


@pytest.fixture
def sample_personal_records():
    """Personal personas as they are stored (origin omitted)."""
    return [
        {
            "id": "persona-aaaaaaaaaaaa",
            "name": "New ChatterBot #1",
            "personality": "You love puns.",
            "voice": "Puck",
            "body_color": "#80d8ff",
        },
        {
            "id": "persona-bbbbbbbbbbbb",
            "name": "Grumpy Gus",
            "personality": "You complain about everything.",
            "voice": "Orus",
            "body_color": "#ffc53d",
        },
    ]


@pytest.fixture
def sample_persona():
    return Persona(
        id="persona-cccccccccccc",
        name="Test Bot",
        personality="You are a test persona.",
        voice="Kore",
        body_color="#9ccf31",
        origin=PersonaOrigin.PERSONAL,
    )
