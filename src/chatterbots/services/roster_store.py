"""
Roster store

Catalog of persona definitions: compiled-in presets plus the personal
personas the user authored, persisted through a blob store
"""
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ..models.persona import Persona, PersonaDraft, PersonaOrigin, PersonaUpdate
from .blob_store import BlobStore
from .persona_presets import PRESETS, create_new_persona

logger = logging.getLogger(__name__)

PERSONAL_PERSONAS_KEY = "chatterbots-personal-agents"
DEFAULT_NAME_PREFIX = "New ChatterBot #"
DEFAULT_NAME_PATTERN = re.compile(r"^New ChatterBot #(\d+)$")


class RosterStore:
    """Owns the available presets and personal personas"""

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        presets: Sequence[Persona] = PRESETS,
        storage_key: str = PERSONAL_PERSONAS_KEY,
    ):
        self.blob_store = blob_store
        self.storage_key = storage_key
        self._presets: List[Persona] = list(presets)
        self._personal: List[Persona] = []

    async def load(self) -> Tuple[Persona, ...]:
        """Load personal personas from the blob store (empty on any problem)"""
        records = await self.blob_store.load(self.storage_key)
        try:
            loaded = [Persona.model_validate({**record, "origin": PersonaOrigin.PERSONAL}) for record in records]
        except ValidationError as e:
            logger.warning(f"Discarding malformed personal personas: {e.error_count()} error(s)")
            loaded = []

        # Preset ids are reserved; personal records never shadow them.
        seen = {preset.id for preset in self._presets}
        self._personal = []
        for persona in loaded:
            if persona.id in seen:
                logger.warning(f"Dropping personal persona with duplicate id: {persona.id}")
                continue
            seen.add(persona.id)
            self._personal.append(persona)

        logger.info(f"Loaded {len(self._personal)} personal persona(s)")
        return self.list_personal()

    def list_presets(self) -> Tuple[Persona, ...]:
        return tuple(self._presets)

    def list_personal(self) -> Tuple[Persona, ...]:
        return tuple(self._personal)

    def get(self, persona_id: str) -> Optional[Persona]:
        for persona in (*self._personal, *self._presets):
            if persona.id == persona_id:
                return persona
        return None

    def next_default_name(self) -> str:
        """
        Next auto-generated name for a personal persona

        Numbered one past the highest existing default name, so names
        stay unique after deletions or renames
        """
        max_num = 0
        for persona in self._personal:
            match = DEFAULT_NAME_PATTERN.match(persona.name)
            if match:
                max_num = max(max_num, int(match.group(1)))
        return f"{DEFAULT_NAME_PREFIX}{max_num + 1}"

    async def create_personal(self, draft: Optional[PersonaDraft] = None) -> Persona:
        """Author a new personal persona, append it and persist the list"""
        persona = create_new_persona(draft, name=self.next_default_name())
        while self.get(persona.id) is not None:
            persona = create_new_persona(draft, name=persona.name)

        self._personal.append(persona)
        await self._save_personal()
        logger.info(f"Created personal persona {persona.id} ({persona.name})")
        return persona

    async def update(
        self,
        persona_id: str,
        fields: Union[PersonaUpdate, Dict[str, Any]],
    ) -> Optional[Persona]:
        """
        Merge fields into the persona with the given id

        Args:
            persona_id: Persona ID
            fields: Partial fields to merge

        Returns:
            The updated persona, or None when no persona has that id
        """
        if isinstance(fields, PersonaUpdate):
            fields = fields.model_dump(exclude_none=True)

        for index, persona in enumerate(self._personal):
            if persona.id == persona_id:
                updated = persona.merged(fields)
                self._personal[index] = updated
                await self._save_personal()
                return updated

        for index, persona in enumerate(self._presets):
            if persona.id == persona_id:
                updated = persona.merged(fields)
                self._presets[index] = updated
                return updated

        logger.debug(f"Ignoring update for unknown persona {persona_id}")
        return None

    async def _save_personal(self) -> None:
        records = [persona.model_dump(mode="json", exclude={"origin"}) for persona in self._personal]
        await self.blob_store.save(self.storage_key, records)
