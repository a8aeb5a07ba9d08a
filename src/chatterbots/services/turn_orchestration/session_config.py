"""Build the streaming-session configuration for the persona holding the turn."""

from typing import Callable, Sequence

from ...models.persona import Persona, UserProfile
from ..persona_prompts import build_system_instructions
from .base import SessionConfig


class SessionConfigBuilder:
    """Derives voice and system instruction from the speaker and the room."""

    def __init__(self, user_profile_provider: Callable[[], UserProfile]):
        self.user_profile_provider = user_profile_provider

    def build(self, speaker: Persona, active: Sequence[Persona]) -> SessionConfig:
        others = [p for p in active if p.id != speaker.id]
        return SessionConfig(
            persona_id=speaker.id,
            voice=speaker.voice,
            system_instruction=build_system_instructions(
                speaker,
                self.user_profile_provider(),
                others,
            ),
        )
