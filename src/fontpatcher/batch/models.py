"""Validated batch job documents."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fontpatcher.core.exceptions import JobDocumentError


class JobDescriptor(BaseModel):
    """Per-job overrides; every field left unset falls back to the shared options."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str | None = None
    font: str | None = None
    output: str | None = None
    unity: str | None = None
    unity_version: str | None = Field(default=None, alias="unityVersion")
    target_game: str | None = Field(default=None, alias="targetGame")
    build_target: str | None = Field(default=None, alias="buildTarget")
    bundle_name: str | None = Field(default=None, alias="bundleName")
    tmp_name: str | None = Field(default=None, alias="tmpName")
    epoch: str | None = None
    use_no_graphics: bool | None = Field(default=None, alias="useNoGraphics")
    point_size: int | None = Field(default=None, alias="pointSize")
    padding: int | None = None
    scan_upper_bound: int | None = Field(default=None, alias="scanUpperBound")
    atlas_sizes: list[int] | None = Field(default=None, alias="atlasSizes")
    include_control: bool | None = Field(default=None, alias="includeControl")
    keep_temp: bool | None = Field(default=None, alias="keepTemp")
    force_dynamic: bool | None = Field(default=None, alias="forceDynamic")
    force_static: bool | None = Field(default=None, alias="forceStatic")
    dynamic_warmup_limit: int | None = Field(default=None, alias="dynamicWarmupLimit")
    dynamic_warmup_batch: int | None = Field(default=None, alias="dynamicWarmupBatch")

    @model_validator(mode="before")
    @classmethod
    def _normalise_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return _canonical_keys(cls, data)


class JobDocument(BaseModel):
    """Top-level ``{"jobs": [...]}`` payload."""

    model_config = ConfigDict(extra="ignore")

    jobs: list[JobDescriptor] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalise_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = _canonical_keys(cls, data)
        if payload.get("jobs") is None:
            payload["jobs"] = []
        return payload


def _canonical_keys(model: type[BaseModel], data: dict[str, Any]) -> dict[str, Any]:
    """Map keys onto field aliases ignoring case (``FONT`` and ``Font`` match ``font``)."""
    lookup: dict[str, str] = {}
    for name, info in model.model_fields.items():
        lookup[name.lower()] = info.alias or name
        if info.alias:
            lookup[info.alias.lower()] = info.alias

    payload: dict[str, Any] = {}
    for key, value in data.items():
        canonical = lookup.get(str(key).lower(), str(key))
        payload.setdefault(canonical, value)
    return payload


def load_job_document(path: str | os.PathLike[str]) -> JobDocument:
    """Read and validate a batch document.

    Raises :class:`JobDocumentError` when the file is missing, is not valid
    JSON, does not match the expected shape, or lists no jobs.
    """
    absolute = Path(os.path.abspath(path))
    if not absolute.is_file():
        raise JobDocumentError(f"Jobs file not found: {absolute}")

    try:
        raw = json.loads(absolute.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError) as exc:
        raise JobDocumentError(f"Unable to read jobs file {absolute}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise JobDocumentError(f"Jobs file is not valid JSON: {absolute} ({exc})") from exc

    if raw is None:
        raw = {}
    try:
        document = JobDocument.model_validate(raw)
    except ValidationError as exc:
        raise JobDocumentError(f"Invalid jobs file {absolute}:\n{exc}") from exc

    if not document.jobs:
        raise JobDocumentError("Jobs file does not contain any jobs.")
    return document


__all__ = ["JobDescriptor", "JobDocument", "load_job_document"]
