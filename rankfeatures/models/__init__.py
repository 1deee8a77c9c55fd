"""Input record types for the feature pipeline."""

from .document import Document, Tokens, documents_from_records

__all__ = ["Document", "Tokens", "documents_from_records"]
