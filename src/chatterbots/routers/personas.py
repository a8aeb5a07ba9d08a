"""
Persona API endpoints

Listing presets and personal personas, authoring and editing them
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from ..models.persona import Persona, PersonaDraft, PersonaUpdate
from ..services.conversation_controller import ConversationController
from .dependencies import get_controller

router = APIRouter(prefix="/api/personas", tags=["personas"])


@router.get("/presets", response_model=List[Persona])
async def list_presets(controller: ConversationController = Depends(get_controller)):
    """Get built-in personas"""
    return list(controller.roster.list_presets())


@router.get("/personal", response_model=List[Persona])
async def list_personal(controller: ConversationController = Depends(get_controller)):
    """Get user-authored personas"""
    return list(controller.roster.list_personal())


@router.get("/{persona_id}", response_model=Persona)
async def get_persona(
    persona_id: str,
    controller: ConversationController = Depends(get_controller)
):
    """
    Get specified persona details

    Args:
        persona_id: Persona ID
    """
    persona = controller.roster.get(persona_id)
    if not persona:
        raise HTTPException(status_code=404, detail=f"Persona '{persona_id}' not found")
    return persona


@router.post("", status_code=201, response_model=Persona)
async def create_persona(
    draft: Optional[PersonaDraft] = Body(None),
    controller: ConversationController = Depends(get_controller)
):
    """
    Author a new personal persona

    Pauses the conversation, adds the persona to the room and opens its editor.
    The name defaults to the next "New ChatterBot #N".
    """
    return await controller.add_new_persona(draft)


@router.put("/{persona_id}", response_model=Persona)
async def update_persona(
    persona_id: str,
    persona_update: PersonaUpdate,
    controller: ConversationController = Depends(get_controller)
):
    """
    Update persona fields

    Only updates fields that are provided (partial update); the change is
    visible in the room immediately
    """
    fields = persona_update.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No updates provided")

    if controller.roster.get(persona_id) is None:
        raise HTTPException(status_code=404, detail=f"Persona '{persona_id}' not found")

    try:
        updated = await controller.edit_persona(persona_id, fields)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if updated is None:
        raise HTTPException(status_code=404, detail=f"Persona '{persona_id}' not found")
    return updated
