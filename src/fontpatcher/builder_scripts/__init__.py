"""Editor-side builder scripts shipped as package data."""

from __future__ import annotations

from pathlib import Path


BUILDER_SCRIPTS_DIR = Path(__file__).parent.resolve()
DEFINITIONS_DIR = BUILDER_SCRIPTS_DIR / "definitions"


__all__ = ["BUILDER_SCRIPTS_DIR", "DEFINITIONS_DIR"]
