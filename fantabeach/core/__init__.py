"""Core package for the fantabeach application."""

from .constants import PLACEHOLDER_PAIR_ID

__all__ = ["PLACEHOLDER_PAIR_ID"]
