"""Shared FastAPI dependencies."""

from fastapi import HTTPException, Request

from ..services.conversation_controller import ConversationController


def get_controller(request: Request) -> ConversationController:
    """Dependency injection: the application-wide conversation controller"""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Conversation controller is not initialized")
    return controller
