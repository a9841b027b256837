"""API routes package."""

from lectio.api.routes import chat, learning_profile, notes

__all__ = [
    "chat",
    "learning_profile",
    "notes",
]
