"""Core module for the groupchat application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
