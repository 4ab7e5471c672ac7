# inventory_tracker/models/inventory.py
import re

from inventory_tracker.core.exceptions import InvalidRequestError


def normalize_name(name: str) -> str:
    """Identity key of an item name: trimmed and lowercased."""
    return name.strip().lower()


def derive_item_id(name: str) -> str:
    """
    Deterministic document id for an item name.

    Whitespace runs become underscores and anything outside [a-z0-9_] is
    dropped, so "Red Onions" and " red onions " both map to "red_onions".
    """
    slug = re.sub(r"\s+", "_", normalize_name(name))
    slug = re.sub(r"[^a-z0-9_]", "", slug)
    if not slug:
        raise InvalidRequestError(f"Cannot derive an id from item name {name!r}")
    return slug
