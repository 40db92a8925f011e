"""Profile persistence package for flashquest.

This package stores players and flashcard decks as JSON files.
Only ProfileStore is exported as the public API.
"""

from .profile_store import ProfileStore

__all__ = ["ProfileStore"]
