# FILE: teletext/routes/conversations.py
"""
Conversation endpoints
"""
import logging

from fastapi import APIRouter

from teletext.services.container import get_services

logger = logging.getLogger(__name__)
router = APIRouter()


@router.delete("/{context_id}")
async def delete_conversation(context_id: str):
    """Forget a conversation; an unknown or expired ID is not an error"""
    deleted = get_services().conversations.delete(context_id)
    if deleted:
        logger.info(f"Conversation deleted: {context_id}")
        return {"success": True, "message": "Conversation deleted"}
    return {"success": True, "message": "Conversation not found or already expired"}
