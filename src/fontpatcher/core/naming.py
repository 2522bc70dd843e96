"""Normalisation of bundle and asset names derived from font files."""

from __future__ import annotations

from slugify import slugify


DEFAULT_BUNDLE_NAME = "fontbundle"
DEFAULT_ASSET_NAME = "TMP_Font"

_BUNDLE_DISALLOWED = r"[^a-z0-9._]+"
_ASSET_DISALLOWED = r"[^-a-zA-Z0-9_]+"


def sanitize_bundle_name(name: str) -> str:
    """Return a lower-case bundle name safe for the Editor's bundle registry."""
    cleaned = slugify(
        name.strip(),
        lowercase=True,
        separator="_",
        regex_pattern=_BUNDLE_DISALLOWED,
    )
    return cleaned or DEFAULT_BUNDLE_NAME


def sanitize_asset_name(name: str) -> str:
    """Return a case-preserving identifier for the generated font asset."""
    cleaned = slugify(
        name.strip(),
        lowercase=False,
        separator="_",
        regex_pattern=_ASSET_DISALLOWED,
    )
    return cleaned or DEFAULT_ASSET_NAME


__all__ = [
    "DEFAULT_ASSET_NAME",
    "DEFAULT_BUNDLE_NAME",
    "sanitize_asset_name",
    "sanitize_bundle_name",
]
