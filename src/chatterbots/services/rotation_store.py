"""
Rotation store

Ordered personas currently in the room, whose turn it is, and the derived
speaker. Every mutation goes through a method that re-establishes:
- active is non-empty and holds no duplicate ids
- 0 <= turn_index < len(active)
- speaker == active[turn_index]
"""
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models.persona import Persona, PersonaUpdate
from .roster_store import RosterStore

logger = logging.getLogger(__name__)


class RotationStore:
    """Turn order over the active personas"""

    def __init__(self, roster: RosterStore, initial: Optional[Persona] = None):
        self.roster = roster
        if initial is None:
            presets = roster.list_presets()
            if not presets:
                raise ValueError("RotationStore needs an initial persona when the roster has no presets")
            initial = presets[0]
        self._active: List[Persona] = [initial]
        self._turn_index = 0
        self._speaker = initial

    @property
    def active(self) -> Tuple[Persona, ...]:
        return tuple(self._active)

    @property
    def turn_index(self) -> int:
        return self._turn_index

    @property
    def speaker(self) -> Persona:
        return self._speaker

    def is_active(self, persona_id: str) -> bool:
        return any(p.id == persona_id for p in self._active)

    def others(self) -> Tuple[Persona, ...]:
        """Active personas other than the current speaker."""
        return tuple(p for p in self._active if p.id != self._speaker.id)

    def toggle(self, persona_id: str) -> bool:
        """
        Add or remove a persona from the room

        Removing the last remaining member and adding an unknown id are
        both refused silently.

        Returns:
            True when active changed
        """
        changed = False
        if self.is_active(persona_id):
            if len(self._active) > 1:
                self._active = [p for p in self._active if p.id != persona_id]
                changed = True
            else:
                logger.debug(f"Refusing to remove last active persona {persona_id}")
        else:
            persona = self.roster.get(persona_id)
            if persona is not None:
                self._active.append(persona)
                changed = True
            else:
                logger.debug(f"Ignoring toggle for unknown persona {persona_id}")

        self._turn_index = min(self._turn_index, len(self._active) - 1)
        self._recompute_speaker()
        return changed

    def add(self, persona: Persona) -> bool:
        """Append a newly authored persona; no-op when already active."""
        if self.is_active(persona.id):
            return False
        self._active.append(persona)
        self._recompute_speaker()
        return True

    def advance(self) -> int:
        """Move the turn to the next active persona and return the new index."""
        self._turn_index = (self._turn_index + 1) % len(self._active)
        self._recompute_speaker()
        return self._turn_index

    async def update_persona(
        self,
        persona_id: str,
        fields: Union[PersonaUpdate, Dict[str, Any]],
    ) -> Optional[Persona]:
        """Propagate an edit to the roster and to the room"""
        updated = await self.roster.update(persona_id, fields)
        if updated is None:
            return None

        self._active = [updated if p.id == persona_id else p for p in self._active]
        self._recompute_speaker()
        return updated

    def _recompute_speaker(self) -> None:
        self._speaker = self._active[self._turn_index]
