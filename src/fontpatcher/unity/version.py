"""Editor version parsing and ordering.

Versions follow ``MAJOR.MINOR.PATCH<stream><number>`` where the stream letter
is one of ``a`` (alpha), ``b`` (beta), ``f`` (final) or ``p`` (patch), for
example ``2022.3.10f1``. The total order compares the numeric fields first,
then the stream rank, then the stream number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re

from fontpatcher.core.exceptions import ConfigurationError, VersionFormatError


_VERSION_RE = re.compile(
    r"^(?P<major>\d{4})\.(?P<minor>\d+)\.(?P<patch>\d+)(?P<stream>[abfp])(?P<number>\d+)$",
    re.IGNORECASE,
)
VERSION_PATTERN = re.compile(r"\d{4}\.\d+\.\d+[abfp]\d+", re.IGNORECASE)

STREAM_RANK = {"a": 0, "b": 1, "f": 2, "p": 3}


@dataclass(frozen=True, slots=True, order=True)
class EditorVersion:
    """Immutable Editor version value."""

    major: int
    minor: int
    patch: int
    stream_rank: int = field(repr=False)
    stream_number: int
    stream: str = field(compare=False)

    @classmethod
    def of(
        cls, major: int, minor: int, patch: int, stream: str = "f", stream_number: int = 1
    ) -> EditorVersion:
        letter = stream.lower()
        if letter not in STREAM_RANK:
            raise VersionFormatError(f"Unknown release stream '{stream}'.")
        return cls(
            major=major,
            minor=minor,
            patch=patch,
            stream_rank=STREAM_RANK[letter],
            stream_number=stream_number,
            stream=letter,
        )

    @classmethod
    def try_parse(cls, text: str | None) -> EditorVersion | None:
        """Return the parsed version, or ``None`` when ``text`` is not a version."""
        if not text or not text.strip():
            return None
        match = _VERSION_RE.match(text.strip())
        if match is None:
            return None
        return cls.of(
            int(match["major"]),
            int(match["minor"]),
            int(match["patch"]),
            match["stream"],
            int(match["number"]),
        )

    @classmethod
    def parse(cls, text: str) -> EditorVersion:
        version = cls.try_parse(text)
        if version is None:
            raise VersionFormatError(
                f"Invalid Unity version value: {text!r}. Example: 2022.3.62f1"
            )
        return version

    @classmethod
    def extract(cls, text: str | None) -> EditorVersion | None:
        """Return the first version embedded anywhere in ``text``."""
        if not text:
            return None
        match = VERSION_PATTERN.search(text)
        return cls.try_parse(match.group(0)) if match else None

    @classmethod
    def from_name(cls, name: str | None) -> EditorVersion | None:
        """Parse a folder name exactly, falling back to a loose embedded match."""
        return cls.try_parse(name) or cls.extract(name)

    @property
    def train(self) -> str:
        return f"{self.major}.{self.minor}"

    def same_train(self, other: EditorVersion) -> bool:
        return self.major == other.major and self.minor == other.minor

    @property
    def is_lts_guess(self) -> bool:
        """Heuristic LTS flag for releases that carry no explicit marker."""
        if self.major >= 2023:
            return False
        return self.minor == 3 or self.major == 2020

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}{self.stream}{self.stream_number}"


def closest_in_train(
    candidates: list[EditorVersion], desired: EditorVersion
) -> EditorVersion | None:
    """Pick the candidate of the same train nearest to ``desired``.

    Patches at or above the desired patch win over lower ones, then the
    smallest patch distance, then the newest version.
    """
    same_train = [candidate for candidate in candidates if candidate.same_train(desired)]
    if not same_train:
        return None
    ranked = sorted(same_train, reverse=True)
    ranked.sort(
        key=lambda v: (1 if v.patch < desired.patch else 0, abs(v.patch - desired.patch))
    )
    return ranked[0]


class Epoch(Enum):
    """Version era selecting the builder script and Editor defaults."""

    LEGACY = "legacy"
    MID = "mid"
    MODERN = "modern"

    @property
    def adapter_name(self) -> str:
        return _EPOCH_NAMES[self]

    @classmethod
    def from_token(cls, token: str) -> Epoch:
        """Accept short (``mid``) and long (``mid-2021-2022``) epoch names."""
        key = token.strip().lower()
        for epoch in cls:
            if key in {epoch.value, epoch.adapter_name}:
                return epoch
        raise ConfigurationError(f"Unknown epoch token: {token}")


_EPOCH_NAMES = {
    Epoch.LEGACY: "legacy-2018-2020",
    Epoch.MID: "mid-2021-2022",
    Epoch.MODERN: "modern-2023-plus",
}


class EpochMode(Enum):
    """Epoch selection input; ``AUTO`` defers to version resolution."""

    AUTO = "auto"
    LEGACY = "legacy"
    MID = "mid"
    MODERN = "modern"

    @classmethod
    def parse(cls, value: str) -> EpochMode:
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(
                "Epoch must be one of: auto, legacy, mid, modern."
            ) from exc

    @property
    def epoch(self) -> Epoch | None:
        return None if self is EpochMode.AUTO else Epoch(self.value)


def epoch_for_version(version: EditorVersion) -> Epoch:
    """Map a version onto its era (``6000.x`` counts as modern)."""
    if version.major >= 2023:
        return Epoch.MODERN
    if version.major >= 2021:
        return Epoch.MID
    return Epoch.LEGACY


__all__ = [
    "STREAM_RANK",
    "VERSION_PATTERN",
    "EditorVersion",
    "Epoch",
    "EpochMode",
    "closest_in_train",
    "epoch_for_version",
]
