# FILE: teletext/routes/ai.py
"""
AI endpoint
"""
import logging

from fastapi import APIRouter

from teletext.models.requests import AIRequest
from teletext.services.container import get_services

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("")
async def run_ai(request: AIRequest):
    """
    Run one AI request (chat, qa or spooky_story).

    The response pages are the paginated answer; pass contextId back in
    parameters to continue the same conversation.
    """
    result = await get_services().ai.generate(request.mode, request.parameters)
    return {
        "success": True,
        "pages": [page.to_json() for page in result.pages],
        "contextId": result.context_id,
    }
