"""
API route handlers for the listings API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .testimonials import router as testimonials_router
from .chat import router as chat_router

__all__ = ["auth_router", "properties_router", "testimonials_router", "chat_router"]
