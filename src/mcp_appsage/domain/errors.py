"""Error taxonomy shared by AppSage domain and service code."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a caller hands the core a value outside its documented range."""
