"""Assistant API endpoints."""

import asyncio
import logging

from fastapi import APIRouter

from pm_command_center.api.models import (
    ConversationResponse,
    MessageResponse,
    SubmitCommandRequest,
)
from pm_command_center.assistant.responses import Message, suggestions
from pm_command_center.factory import get_session, get_task_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant")


@router.get("/messages", response_model=ConversationResponse)
async def list_messages() -> ConversationResponse:
    """Return the conversation log and whether a reply is pending."""
    session = get_session()
    return ConversationResponse(
        composing=session.composing,
        messages=[_to_response(message) for message in session.messages],
    )


@router.post("/messages", response_model=ConversationResponse, status_code=202)
async def submit_command(
    request: SubmitCommandRequest, wait: bool = False
) -> ConversationResponse:
    """Submit a command to the assistant.

    Args:
        request: Command text
        wait: Block until the reply has been appended

    Returns:
        The conversation log after submission (and after the reply when ``wait``)
    """
    session = get_session()
    cycle = session.submit(request.text)
    if wait and cycle is not None:
        # Client cancellation must not abort the reply cycle
        await asyncio.shield(cycle)
    return await list_messages()


@router.get("/suggestions", response_model=list[str])
async def list_suggestions() -> list[str]:
    """Return proactive prompts for the current tasks."""
    return suggestions(get_task_store().get_all())


def _to_response(message: Message) -> MessageResponse:
    return MessageResponse(**message.to_dict())
