"""
Middleware package for the listings API.
"""

from .validation import ValidationMiddleware

__all__ = ["ValidationMiddleware"]
