"""Shared utilities used across features."""

from barcompass.shared.schemas import Page, PageQuery

__all__ = [
    "Page",
    "PageQuery",
]
