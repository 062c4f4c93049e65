"""Syntax checks for Apple Music identifiers and tokens."""

from __future__ import annotations

import re

_CATALOG_ID = re.compile(r"^\d+$")
_LIBRARY_ALBUM_ID = re.compile(r"^l\.[A-Za-z0-9]+$")
_STOREFRONT = re.compile(r"^[a-z]{2}$")


def validate_catalog_id(catalog_id: str) -> bool:
    """Catalog ids are purely numeric."""
    return bool(_CATALOG_ID.match(catalog_id))


def validate_library_album_id(library_id: str) -> bool:
    """Library album ids look like ``l.AbC123``."""
    return bool(_LIBRARY_ALBUM_ID.match(library_id))


def validate_storefront(storefront: str) -> bool:
    """Storefronts are two lower-case letters, e.g. ``us``."""
    return bool(_STOREFRONT.match(storefront))


def validate_developer_token(token: str) -> bool:
    """Basic shape check: a JWT has three non-empty dot-separated segments."""
    parts = token.split(".")
    return len(parts) == 3 and all(parts)
