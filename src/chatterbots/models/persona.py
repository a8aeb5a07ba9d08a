"""
Persona data models

Defines Pydantic models for the agent personas that take turns in the
voice room, plus the profile of the human they talk to
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PersonaOrigin(str, Enum):
    """Where a persona definition comes from"""
    PRESET = "preset"
    PERSONAL = "personal"


class Persona(BaseModel):
    """Voice- and prompt-configured identity the streaming backend can embody"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Persona unique identifier, never changes")
    name: str = Field(..., description="Display name (not guaranteed unique)")
    personality: str = Field(default="", description="Prompt-generation input describing the persona")
    voice: str = Field(..., min_length=1, description="Voice selector understood by the streaming backend")
    body_color: str = Field(default="#9ccf31", description="Display-only accent color")
    origin: PersonaOrigin = Field(default=PersonaOrigin.PERSONAL, description="preset or personal")

    def merged(self, fields: Dict[str, Any]) -> "Persona":
        """Return a copy with editable fields replaced; id and origin are kept."""
        data = self.model_dump()
        for key, value in fields.items():
            if key in ("id", "origin") or value is None:
                continue
            data[key] = value
        return Persona.model_validate(data)


class PersonaDraft(BaseModel):
    """Input for authoring a new personal persona"""
    name: Optional[str] = Field(None, description="Display name (auto-generated when omitted)")
    personality: Optional[str] = Field(None, description="Personality description")
    voice: Optional[str] = Field(None, description="Voice selector")
    body_color: Optional[str] = Field(None, description="Accent color")


class PersonaUpdate(BaseModel):
    """Partial persona edit"""
    name: Optional[str] = Field(None, description="Display name")
    personality: Optional[str] = Field(None, description="Personality description")
    voice: Optional[str] = Field(None, min_length=1, description="Voice selector")
    body_color: Optional[str] = Field(None, description="Accent color")


class UserProfile(BaseModel):
    """The human in the room"""
    name: str = Field(default="", description="How the agents should address the user")
    info: str = Field(default="", description="Free-form facts the user shared about themselves")
