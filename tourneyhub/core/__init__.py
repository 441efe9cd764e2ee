"""Core module for shared types and constants."""

from .types import APIResponse, FirestoreDocument

__all__ = ["APIResponse", "FirestoreDocument"]
