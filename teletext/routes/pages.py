# FILE: teletext/routes/pages.py
"""
Page endpoints
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request

from teletext.models.requests import PageResult, TextInputRequest
from teletext.services.container import get_services

logger = logging.getLogger(__name__)
router = APIRouter()


def page_response(result: PageResult) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "page": result.page.to_json()}
    if result.additional_pages:
        body["additionalPages"] = [page.to_json() for page in result.additional_pages]
    if result.context_id:
        body["contextId"] = result.context_id
    return body


@router.get("/{page_id}")
async def get_page(page_id: str, request: Request):
    """Render a page; query parameters are validated per page"""
    result = await get_services().pages.get_page(page_id, dict(request.query_params))
    return page_response(result)


@router.post("/{page_id}")
async def post_page_input(page_id: str, body: TextInputRequest):
    """Typed input for a page: quiz answers, story choices, AI questions"""
    result = await get_services().pages.post_input(page_id, body.text_input, body.context_id)
    return page_response(result)
