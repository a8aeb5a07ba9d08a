"""System instructions for the persona currently holding the session."""

from datetime import date
from typing import Optional, Sequence

from ..models.persona import Persona, UserProfile

VOICE_GUIDANCE = (
    "You are speaking out loud in a live voice conversation. Keep every reply to a few "
    "short sentences, never use lists, markdown or emoji, and do not describe your own actions."
)


def _describe_user(user: UserProfile) -> str:
    name = user.name.strip()
    info = user.info.strip()
    if name and info:
        return f"You are talking with {name}. Here is what they shared about themselves: {info}"
    if name:
        return f"You are talking with {name}."
    if info:
        return f"Here is what the user shared about themselves: {info}"
    return "You are talking with the user. You do not know their name yet."


def _describe_room(others: Sequence[Persona]) -> str:
    if not others:
        return "You are the only agent in the room."
    names = ", ".join(p.name for p in others)
    return (
        f"Other agents in the room: {names}. They take turns after you. When a message comes "
        "from another agent, respond to it in character as if they said it to you."
    )


def build_system_instructions(
    speaker: Persona,
    user: UserProfile,
    others: Sequence[Persona] = (),
    *,
    today: Optional[date] = None,
) -> str:
    """Render the system instruction text for the speaking persona."""
    today = today or date.today()
    sections = [
        f"Your name is {speaker.name}.",
        speaker.personality.strip(),
        _describe_user(user),
        _describe_room(others),
        f"Today's date is {today.strftime('%A, %B %d, %Y')}.",
        VOICE_GUIDANCE,
    ]
    return "\n\n".join(section for section in sections if section)
