"""API v1 package."""

from .chatbot import router as chatbot_router
from .usage import router as usage_router
from .schedules import router as schedules_router

__all__ = ["chatbot_router", "usage_router", "schedules_router"]
