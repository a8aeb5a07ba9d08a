"""
Conversation API endpoints

Connect/mute controls, config panels, the user profile, the turn event
log, and hooks for driving a dry-run session by hand
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..models.persona import UserProfile
from ..services.conversation_controller import ConversationController, Panel
from ..services.turn_orchestration import DryRunLiveSession, SilentCaptureSource
from .dependencies import get_controller

router = APIRouter(prefix="/api/conversation", tags=["conversation"])


# Pydantic models
class MuteRequest(BaseModel):
    """Request model for the microphone control (omit muted to toggle)"""
    muted: Optional[bool] = None


class UserProfileUpdate(BaseModel):
    """Request model for updating the user profile"""
    name: Optional[str] = Field(None, max_length=200)
    info: Optional[str] = Field(None, max_length=4000)


class PanelRequest(BaseModel):
    """Request model for opening or closing a config panel"""
    open: bool
    persona_id: Optional[str] = Field(None, description="Persona to edit (agent_edit only)")


class UtteranceRequest(BaseModel):
    """Completed utterance injected into a dry-run session"""
    text: str = Field(..., min_length=1)


class AudioRequest(BaseModel):
    """Encoded audio chunk pushed into a silent capture source"""
    data: str = Field(..., min_length=1)


# Endpoints
@router.get("")
async def get_conversation(controller: ConversationController = Depends(get_controller)):
    """Get room, turn, capture, panel and user state"""
    return controller.snapshot()


@router.post("/connection")
async def toggle_connection(controller: ConversationController = Depends(get_controller)):
    """Connect button: connect when idle, disconnect otherwise"""
    was_connecting = not controller.orchestrator.wants_connection
    if was_connecting and controller.any_panel_open:
        raise HTTPException(status_code=409, detail="Close the config panels before connecting")

    await controller.toggle_connection()
    return controller.orchestrator.snapshot()


@router.post("/mute")
async def set_mute(
    request: Optional[MuteRequest] = None,
    controller: ConversationController = Depends(get_controller)
):
    """Mute, unmute or toggle the microphone"""
    if request is None or request.muted is None:
        muted = controller.toggle_mute()
    else:
        muted = controller.set_muted(request.muted)
    return {"muted": muted, "capturing": controller.gate.source.is_started}


@router.put("/user", response_model=UserProfile)
async def update_user(
    updates: UserProfileUpdate,
    controller: ConversationController = Depends(get_controller)
):
    """Update the user's name and info"""
    return controller.set_user_profile(name=updates.name, info=updates.info)


@router.post("/panels/{panel}")
async def set_panel(
    panel: str,
    request: PanelRequest,
    controller: ConversationController = Depends(get_controller)
):
    """Open or close a config panel; opening one ends the live conversation"""
    try:
        target = Panel(panel)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown panel '{panel}'")

    if target is Panel.AGENT_EDIT and request.open:
        if not request.persona_id:
            raise HTTPException(status_code=400, detail="persona_id is required to open agent_edit")
        if not await controller.open_persona_editor(request.persona_id):
            raise HTTPException(status_code=404, detail=f"Persona '{request.persona_id}' not found")
    else:
        await controller.set_panel(target, request.open)

    return controller.snapshot()


@router.get("/events")
async def list_events(
    limit: int = Query(50, ge=1, le=1000),
    controller: ConversationController = Depends(get_controller)
):
    """Recent turn-orchestration events, oldest first"""
    return {"events": controller.orchestrator.recent_events(limit)}


# ==================== Dry run ====================

@router.post("/dry-run/utterance")
async def inject_utterance(
    request: UtteranceRequest,
    controller: ConversationController = Depends(get_controller)
):
    """Pretend the backend completed an utterance (dry-run session only)"""
    session = controller.orchestrator.session
    if not isinstance(session, DryRunLiveSession):
        raise HTTPException(status_code=409, detail="Live session is not a dry-run session")

    await session.inject_completed_text(request.text)
    await controller.orchestrator.wait_for_transition()
    return controller.orchestrator.snapshot()


@router.post("/dry-run/audio")
async def push_audio(
    request: AudioRequest,
    controller: ConversationController = Depends(get_controller)
):
    """Push one encoded chunk through the capture gate (silent capture source only)"""
    source = controller.gate.source
    if not isinstance(source, SilentCaptureSource):
        raise HTTPException(status_code=409, detail="Capture source does not accept pushed audio")

    delivered = await source.push(request.data)
    return {"delivered": delivered, **controller.gate.snapshot()}
