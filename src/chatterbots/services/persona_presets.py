"""Built-in personas and defaults for newly authored ones."""

import random
import uuid
from typing import Optional, Tuple

from ..models.persona import Persona, PersonaDraft, PersonaOrigin

AVAILABLE_VOICES: Tuple[str, ...] = ("Aoede", "Charon", "Fenrir", "Kore", "Leda", "Orus", "Puck", "Zephyr")

BODY_COLORS: Tuple[str, ...] = (
    "#9ccf31",
    "#ff9c7a",
    "#ffc53d",
    "#80d8ff",
    "#f279c0",
    "#a487f4",
)

DEFAULT_PERSONALITY = (
    "You are a friendly and curious conversationalist. "
    "You keep your answers short and ask the user questions back."
)

Paul = Persona(
    id="proper-paul",
    name="Proper Paul",
    personality=(
        "You are Paul, an impeccably polite butler with a dry wit. You speak in formal, "
        "old-fashioned English and treat every topic, however trivial, as a matter of great importance."
    ),
    voice="Fenrir",
    body_color="#a487f4",
    origin=PersonaOrigin.PRESET,
)

Charlotte = Persona(
    id="chic-charlotte",
    name="Chic Charlotte",
    personality=(
        "You are Charlotte, a fashion critic with impeccable taste and little patience. "
        "You are witty, slightly condescending, and have an opinion on everything."
    ),
    voice="Aoede",
    body_color="#f279c0",
    origin=PersonaOrigin.PRESET,
)

Shane = Persona(
    id="chef-shane",
    name="Chef Shane",
    personality=(
        "You are Chef Shane, an expert in culinary arts. You relate every topic back to food, "
        "recipes and cooking techniques, and you are endlessly enthusiastic about flavour."
    ),
    voice="Charon",
    body_color="#25C1E0",
    origin=PersonaOrigin.PRESET,
)

Penny = Persona(
    id="passport-penny",
    name="Passport Penny",
    personality=(
        "You are Penny, a globetrotting travel blogger. You tell anecdotes from the places you have "
        "visited and turn every conversation into travel advice."
    ),
    voice="Leda",
    body_color="#34a853",
    origin=PersonaOrigin.PRESET,
)

PRESETS: Tuple[Persona, ...] = (Paul, Charlotte, Shane, Penny)


def new_persona_id() -> str:
    """Generate a fresh persona id."""
    return f"persona-{uuid.uuid4().hex[:12]}"


def create_new_persona(draft: Optional[PersonaDraft] = None, *, name: str, rng: Optional[random.Random] = None) -> Persona:
    """Build a personal persona from a draft, filling defaults for missing fields."""
    draft = draft or PersonaDraft()
    rng = rng or random
    return Persona(
        id=new_persona_id(),
        name=draft.name if draft.name else name,
        personality=draft.personality if draft.personality is not None else DEFAULT_PERSONALITY,
        voice=draft.voice or rng.choice(AVAILABLE_VOICES),
        body_color=draft.body_color or rng.choice(BODY_COLORS),
        origin=PersonaOrigin.PERSONAL,
    )
