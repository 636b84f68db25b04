"""Dependency-free helpers shared across billshare.

Modules here must not import anything from the billshare package itself.
"""

from .amounts import format_amount, parse_amount

__all__ = [
    "format_amount",
    "parse_amount",
]
