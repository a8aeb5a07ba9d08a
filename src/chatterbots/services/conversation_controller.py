"""
Conversation controller

User-facing actions of the voice room: picking who is in the room,
authoring and editing personas, the connect/mute controls and the config
panels that pause the conversation while open
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..config import DEFAULT_GREETING_PROMPT
from ..models.persona import Persona, PersonaDraft, PersonaUpdate, UserProfile
from .blob_store import BlobStore
from .roster_store import PERSONAL_PERSONAS_KEY, RosterStore
from .rotation_store import RotationStore
from .turn_orchestration import (
    CaptureGate,
    CaptureSource,
    LiveSession,
    SessionConfigBuilder,
    TurnOrchestrator,
)

logger = logging.getLogger(__name__)


class Panel(str, Enum):
    """Config panels that pause the conversation while open"""
    AGENT_EDIT = "agent_edit"
    USER_CONFIG = "user_config"


class ConversationController:
    """Wires the stores, the orchestrator and the capture gate together"""

    def __init__(
        self,
        *,
        blob_store: BlobStore,
        session: LiveSession,
        capture_source: CaptureSource,
        storage_key: str = PERSONAL_PERSONAS_KEY,
        greeting_prompt: str = DEFAULT_GREETING_PROMPT,
        event_log_size: int = 200,
        user_profile: Optional[UserProfile] = None,
    ):
        self.user_profile = user_profile or UserProfile()
        self.roster = RosterStore(blob_store, storage_key=storage_key)
        self.rotation = RotationStore(self.roster)
        self.config_builder = SessionConfigBuilder(lambda: self.user_profile)
        self.orchestrator = TurnOrchestrator(
            self.rotation,
            session,
            self.config_builder,
            greeting_prompt=greeting_prompt,
            event_log_size=event_log_size,
        )
        self.gate = CaptureGate(capture_source, self.orchestrator)

        self.open_panels: Dict[Panel, bool] = {panel: False for panel in Panel}
        self.editing_persona_id: Optional[str] = None
        self._started = False

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Load personal personas and subscribe collaborators"""
        if self._started:
            return
        personal = await self.roster.load()
        # First run: nobody has introduced themselves yet.
        self.open_panels[Panel.USER_CONFIG] = len(personal) == 0
        self.orchestrator.start()
        self.gate.attach()
        self._started = True

    async def shutdown(self) -> None:
        if not self._started:
            return
        self.gate.detach()
        await self.orchestrator.aclose()
        self._started = False

    # ==================== Room ====================

    async def select_persona(self, persona_id: str) -> bool:
        """Toggle a persona in or out of the room (pauses the conversation)"""
        await self.orchestrator.disconnect(reason="room_changed")
        return self.rotation.toggle(persona_id)

    async def add_new_persona(self, draft: Optional[PersonaDraft] = None) -> Persona:
        """Author a new personal persona, bring it into the room and open its editor"""
        await self.orchestrator.disconnect(reason="persona_created")
        persona = await self.roster.create_personal(draft)
        self.rotation.add(persona)
        await self.open_persona_editor(persona.id)
        return persona

    async def edit_persona(
        self,
        persona_id: str,
        fields: Union[PersonaUpdate, Dict[str, Any]],
    ) -> Optional[Persona]:
        return await self.rotation.update_persona(persona_id, fields)

    # ==================== Panels ====================

    async def open_persona_editor(self, persona_id: str) -> bool:
        if self.roster.get(persona_id) is None:
            return False
        self.editing_persona_id = persona_id
        await self.set_panel(Panel.AGENT_EDIT, True)
        return True

    async def close_persona_editor(self) -> None:
        await self.set_panel(Panel.AGENT_EDIT, False)

    async def open_user_config(self) -> None:
        await self.set_panel(Panel.USER_CONFIG, True)

    async def close_user_config(self) -> None:
        await self.set_panel(Panel.USER_CONFIG, False)

    async def set_panel(self, panel: Panel, is_open: bool) -> None:
        """Open or close a config panel; opening one ends the live conversation"""
        self.open_panels[panel] = bool(is_open)
        if panel is Panel.AGENT_EDIT and not is_open:
            self.editing_persona_id = None
        if is_open and self.orchestrator.wants_connection:
            await self.orchestrator.disconnect(reason=f"{panel.value}_opened")

    @property
    def any_panel_open(self) -> bool:
        return any(self.open_panels.values())

    # ==================== User ====================

    def set_user_profile(self, name: Optional[str] = None, info: Optional[str] = None) -> UserProfile:
        data = self.user_profile.model_dump()
        if name is not None:
            data["name"] = name
        if info is not None:
            data["info"] = info
        self.user_profile = UserProfile(**data)
        return self.user_profile

    # ==================== Controls ====================

    async def toggle_connection(self) -> bool:
        """Connect button; connecting is refused while a config panel is open"""
        if not self.orchestrator.wants_connection and self.any_panel_open:
            logger.info("Not connecting while a config panel is open")
            return False
        return await self.orchestrator.toggle_connection()

    def toggle_mute(self) -> bool:
        return self.gate.toggle_mute()

    def set_muted(self, muted: bool) -> bool:
        return self.gate.set_muted(muted)

    # ==================== Views ====================

    def room_snapshot(self) -> Dict[str, Any]:
        return {
            "active": [p.model_dump(mode="json") for p in self.rotation.active],
            "turn_index": self.rotation.turn_index,
            "speaker": self.rotation.speaker.model_dump(mode="json"),
        }

    def snapshot(self) -> Dict[str, Any]:
        return {
            "room": self.room_snapshot(),
            "conversation": self.orchestrator.snapshot(),
            "capture": self.gate.snapshot(),
            "panels": {panel.value: is_open for panel, is_open in self.open_panels.items()},
            "editing_persona_id": self.editing_persona_id,
            "user": self.user_profile.model_dump(),
        }
