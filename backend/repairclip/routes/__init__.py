"""
Routes module - contains all API route handlers
"""

from .pubsub import router as pubsub_router

__all__ = ["pubsub_router"]
