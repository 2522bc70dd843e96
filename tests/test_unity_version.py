from __future__ import annotations

import pytest

from fontpatcher.core.exceptions import ConfigurationError, VersionFormatError
from fontpatcher.unity.version import (
    EditorVersion,
    Epoch,
    EpochMode,
    closest_in_train,
    epoch_for_version,
)


def _v(text: str) -> EditorVersion:
    return EditorVersion.parse(text)


def test_parse_round_trips_and_lowercases_stream() -> None:
    version = EditorVersion.parse("2022.3.62F1")
    assert (version.major, version.minor, version.patch) == (2022, 3, 62)
    assert version.stream == "f"
    assert version.stream_number == 1
    assert str(version) == "2022.3.62f1"


@pytest.mark.parametrize("text", ["", "   ", "2022.3", "2022.3.1x1", "22.3.1f1", "v2022.3.1f1"])
def test_try_parse_rejects_non_versions(text: str) -> None:
    assert EditorVersion.try_parse(text) is None


def test_parse_raises_version_format_error() -> None:
    with pytest.raises(VersionFormatError, match="Example: 2022.3.62f1"):
        EditorVersion.parse("latest")


def test_ordering_uses_numbers_then_stream_rank() -> None:
    ordered = sorted(
        [
            _v("2022.3.10p1"),
            _v("2022.3.10f2"),
            _v("2022.3.10a5"),
            _v("2021.3.40f1"),
            _v("2022.3.10b1"),
        ]
    )
    assert [str(v) for v in ordered] == [
        "2021.3.40f1",
        "2022.3.10a5",
        "2022.3.10b1",
        "2022.3.10f2",
        "2022.3.10p1",
    ]
    assert _v("2022.3.9f1") < _v("2022.3.10f1")


def test_extract_finds_embedded_version() -> None:
    assert str(EditorVersion.extract("Unity 2021.3.16f1 (abcdef)")) == "2021.3.16f1"
    assert EditorVersion.extract("no version here") is None
    assert EditorVersion.extract(None) is None


def test_from_name_accepts_decorated_folder_names() -> None:
    assert str(EditorVersion.from_name("2020.3.48f1")) == "2020.3.48f1"
    assert str(EditorVersion.from_name("Unity 2019.4.40f1")) == "2019.4.40f1"
    assert EditorVersion.from_name("Editor") is None


def test_train_helpers() -> None:
    version = _v("2022.3.10f1")
    assert version.train == "2022.3"
    assert version.same_train(_v("2022.3.62f1"))
    assert not version.same_train(_v("2022.2.10f1"))


@pytest.mark.parametrize(
    ("text", "expected"),
    [("2022.3.10f1", True), ("2020.1.5f1", True), ("2022.2.1f1", False), ("2023.3.1f1", False)],
)
def test_lts_heuristic(text: str, expected: bool) -> None:
    assert _v(text).is_lts_guess is expected


def test_closest_in_train_prefers_patch_at_or_above_desired() -> None:
    candidates = [_v("2022.3.8f1"), _v("2022.3.12f1"), _v("2022.3.20f1"), _v("2021.3.10f1")]
    assert str(closest_in_train(candidates, _v("2022.3.10f1"))) == "2022.3.12f1"


def test_closest_in_train_falls_back_to_lower_patch() -> None:
    candidates = [_v("2022.3.2f1"), _v("2022.3.5f1")]
    assert str(closest_in_train(candidates, _v("2022.3.10f1"))) == "2022.3.5f1"


def test_closest_in_train_breaks_ties_with_newest() -> None:
    candidates = [_v("2022.3.10f1"), _v("2022.3.10f2")]
    assert str(closest_in_train(candidates, _v("2022.3.10f3"))) == "2022.3.10f2"
    higher = [_v("2022.3.12f1"), _v("2022.3.12f3")]
    assert str(closest_in_train(higher, _v("2022.3.10f1"))) == "2022.3.12f3"


def test_closest_in_train_returns_none_without_same_train() -> None:
    assert closest_in_train([_v("2021.3.10f1")], _v("2022.3.10f1")) is None


@pytest.mark.parametrize(
    ("text", "epoch"),
    [
        ("2018.4.36f1", Epoch.LEGACY),
        ("2020.3.48f1", Epoch.LEGACY),
        ("2021.3.16f1", Epoch.MID),
        ("2022.3.62f1", Epoch.MID),
        ("2023.2.20f1", Epoch.MODERN),
        ("6000.0.23f1", Epoch.MODERN),
    ],
)
def test_epoch_for_version(text: str, epoch: Epoch) -> None:
    assert epoch_for_version(_v(text)) is epoch


def test_epoch_tokens_and_modes() -> None:
    assert Epoch.from_token("mid-2021-2022") is Epoch.MID
    assert Epoch.from_token(" Legacy ") is Epoch.LEGACY
    assert Epoch.MODERN.adapter_name == "modern-2023-plus"
    with pytest.raises(ConfigurationError):
        Epoch.from_token("future")

    assert EpochMode.parse("AUTO").epoch is None
    assert EpochMode.parse("modern").epoch is Epoch.MODERN
    with pytest.raises(ConfigurationError, match="auto, legacy, mid, modern"):
        EpochMode.parse("newest")
