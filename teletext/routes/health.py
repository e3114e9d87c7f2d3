# FILE: teletext/routes/health.py
"""
Health check endpoint
"""
import logging
from fastapi import APIRouter

from teletext.services.container import get_services

logger = logging.getLogger(__name__)
router = APIRouter()

VERSION = "1.0.0"


@router.get("")
async def health_check():
    """
    Health check endpoint
    Reports provider, store backend, throttler state and telemetry summary
    """
    services = get_services()
    status = services.status()
    return {
        "status": "healthy",
        "version": VERSION,
        "ai_available": services.throttler is not None,
        **status,
    }
