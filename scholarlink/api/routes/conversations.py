"""
Conversations API Endpoints

Two-party conversations and their messages.
"""
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from scholarlink.api.auth import get_container, require_signed_in
from scholarlink.container import AppContainer
from scholarlink.schemas.messaging import Message
from scholarlink.schemas.user import UserProfile

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


class StartConversationRequest(BaseModel):
    user_id: UUID


class SendMessageRequest(BaseModel):
    content: str


class ConversationListResponse(BaseModel):
    data: List[Dict[str, Any]]


class ConversationResponse(BaseModel):
    data: Dict[str, Any]


class MessageListResponse(BaseModel):
    data: List[Message]


class MessageResponse(BaseModel):
    data: Message


def _view(conversation, me: UUID) -> Dict[str, Any]:
    view = conversation.model_dump(mode="json")
    view["other_user_id"] = str(conversation.other_user_id(me))
    view["other_user_name"] = conversation.other_user_name(me)
    return view


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    refresh: bool = Query(False),
    user: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    if refresh:
        await container.messaging.load_conversations()
    return ConversationListResponse(data=[_view(c, user.id) for c in container.messaging.conversations])


@router.post("", response_model=ConversationResponse)
async def start_conversation(
    body: StartConversationRequest,
    user: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    """Open the conversation with another user, creating it on first contact."""
    other = await container.user_session.lookup_profile(body.user_id)

    conversation = await container.messaging.get_or_create_conversation(other)
    return ConversationResponse(data=_view(conversation, user.id))


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: UUID,
    _: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    return MessageListResponse(data=await container.messaging.load_messages(conversation_id))


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    _: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    return MessageResponse(data=await container.messaging.send_message(conversation_id, body.content))
