"""Core SQL utilities package."""

from .identifier import (
    fits_identifier_limit,
    is_valid_identifier,
    quote_identifier,
    render_identifier,
)

__all__ = [
    "is_valid_identifier",
    "fits_identifier_limit",
    "quote_identifier",
    "render_identifier",
]
