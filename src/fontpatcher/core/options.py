"""Job-level conversion and provisioning options."""

from __future__ import annotations

from collections.abc import Iterable
import dataclasses
from dataclasses import dataclass
from pathlib import Path

from fontpatcher.unity.version import EpochMode

from .exceptions import ConfigurationError
from .naming import sanitize_asset_name, sanitize_bundle_name


MIN_ATLAS_SIZE = 256
MAX_ATLAS_SIZE = 8192
DEFAULT_ATLAS_SIZES: tuple[int, ...] = (1024, 2048, 4096)
DEFAULT_BUILD_TARGET = "StandaloneWindows64"
SUPPORTED_FONT_EXTENSIONS = frozenset({".ttf", ".otf", ".ttc", ".otc"})


def parse_atlas_sizes(value: str | Iterable[int]) -> tuple[int, ...]:
    """Parse a comma separated list (or iterable) of atlas sizes.

    Entries are deduplicated and returned in ascending order; each must lie
    within ``[256..8192]``.
    """
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
    else:
        parts = [str(part).strip() for part in value]

    sizes: set[int] = set()
    for part in parts:
        try:
            size = int(part)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid atlas size: {part}") from exc
        if size < MIN_ATLAS_SIZE or size > MAX_ATLAS_SIZE:
            raise ConfigurationError(
                f"Atlas size out of range [{MIN_ATLAS_SIZE}..{MAX_ATLAS_SIZE}]: {part}"
            )
        sizes.add(size)

    if not sizes:
        raise ConfigurationError("At least one atlas size is required.")
    return tuple(sorted(sizes))


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Every knob that shapes a single font conversion job.

    ``bundle_name`` and ``asset_name`` left as ``None`` are derived from the
    font file stem when the job runs, so a batch descriptor that swaps the
    font also swaps the default names.
    """

    font_path: Path | None = None
    output_dir: Path | None = None
    editor_path: Path | None = None
    hub_path: Path | None = None
    editor_version: str | None = None
    target_game: Path | None = None
    install_root: Path | None = None
    auto_install_editor: bool = True
    auto_install_hub: bool = True
    prefer_lts: bool = True
    bundle_name: str | None = None
    asset_name: str | None = None
    build_target: str = DEFAULT_BUILD_TARGET
    atlas_sizes: tuple[int, ...] = DEFAULT_ATLAS_SIZES
    point_size: int = 90
    padding: int = 8
    scan_upper_bound: int = 0x10FFFF
    keep_temp: bool = False
    force_dynamic: bool = False
    force_static: bool = False
    dynamic_warmup_limit: int = 20_000
    dynamic_warmup_batch: int = 1024
    include_control: bool = False
    epoch_mode: EpochMode = EpochMode.AUTO
    use_no_graphics: bool | None = None

    def replace(self, **changes: object) -> ConversionOptions:
        return dataclasses.replace(self, **changes)

    @property
    def font_stem(self) -> str:
        if self.font_path is None:
            return "font"
        return self.font_path.stem or "font"

    def resolved_bundle_name(self) -> str:
        raw = self.bundle_name if self.bundle_name else self.font_stem.lower()
        return sanitize_bundle_name(raw)

    def resolved_asset_name(self) -> str:
        raw = self.asset_name if self.asset_name else f"TMP_{self.font_stem}"
        return sanitize_asset_name(raw)

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` on inconsistent option values."""
        if self.force_static and self.force_dynamic:
            raise ConfigurationError("Use only one of --force-static or --force-dynamic.")
        parse_atlas_sizes(self.atlas_sizes)
        if self.point_size <= 0:
            raise ConfigurationError("Point size must be a positive integer.")
        if self.padding < 0:
            raise ConfigurationError("Padding must be >= 0.")
        if self.scan_upper_bound < 0:
            raise ConfigurationError("Scan upper bound must be >= 0.")
        if self.dynamic_warmup_limit < 0:
            raise ConfigurationError("Dynamic warmup limit must be >= 0.")
        if self.dynamic_warmup_batch <= 0:
            raise ConfigurationError("Dynamic warmup batch must be > 0.")
        if not self.build_target.strip():
            raise ConfigurationError("Build target must not be empty.")


__all__ = [
    "DEFAULT_ATLAS_SIZES",
    "DEFAULT_BUILD_TARGET",
    "MAX_ATLAS_SIZE",
    "MIN_ATLAS_SIZE",
    "SUPPORTED_FONT_EXTENSIONS",
    "ConversionOptions",
    "parse_atlas_sizes",
]
