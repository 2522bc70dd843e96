"""CLI command implementations exposed via `fontpatcher.ui.cli`."""

from __future__ import annotations

from .batch import batch
from .convert import convert
from .editors import check, editors, install


__all__ = ["batch", "check", "convert", "editors", "install"]
