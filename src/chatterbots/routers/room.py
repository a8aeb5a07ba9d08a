"""
Room API endpoints

Who is in the room and whose turn it is
"""
from fastapi import APIRouter, Depends, HTTPException

from ..services.conversation_controller import ConversationController
from .dependencies import get_controller

router = APIRouter(prefix="/api/room", tags=["room"])


@router.get("")
async def get_room(controller: ConversationController = Depends(get_controller)):
    """Get active personas, turn index and current speaker"""
    return controller.room_snapshot()


@router.post("/toggle/{persona_id}")
async def toggle_persona(
    persona_id: str,
    controller: ConversationController = Depends(get_controller)
):
    """
    Add a persona to the room or remove it

    Removing the last persona in the room is refused (changed=false).
    """
    if controller.roster.get(persona_id) is None:
        raise HTTPException(status_code=404, detail=f"Persona '{persona_id}' not found")

    changed = await controller.select_persona(persona_id)
    return {"changed": changed, **controller.room_snapshot()}
