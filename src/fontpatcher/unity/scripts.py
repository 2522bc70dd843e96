"""Registry of Editor-side builder scripts keyed by epoch."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from fontpatcher.builder_scripts import DEFINITIONS_DIR
from fontpatcher.core.exceptions import BuilderScriptError, ConfigurationError

from .version import Epoch


logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_FILE_NAME = "FontBundleBuilder.cs"
DEFINITION_GLOB = "*.builder.json"


@dataclass(frozen=True, slots=True)
class BuilderScript:
    """Opaque Editor script payload written verbatim into the workspace."""

    source_code: str
    entry_method: str
    output_file_name: str = DEFAULT_OUTPUT_FILE_NAME


def _lookup(data: dict[str, Any], key: str) -> Any:
    lowered = {str(name).lower(): value for name, value in data.items()}
    return lowered.get(key.lower())


def _required_text(data: dict[str, Any], key: str, path: Path) -> str:
    value = _lookup(data, key)
    if not isinstance(value, str) or not value.strip():
        raise BuilderScriptError(f"{key} is missing in: {path}")
    return value.strip()


class BuilderScriptRegistry:
    """Load ``*.builder.json`` definitions once and serve scripts per epoch."""

    def __init__(self, definitions_dir: Path = DEFINITIONS_DIR) -> None:
        self.definitions_dir = Path(definitions_dir)
        self._scripts: dict[Epoch, BuilderScript] | None = None
        self._lock = Lock()

    def get(self, epoch: Epoch) -> BuilderScript:
        scripts = self._load()
        try:
            return scripts[epoch]
        except KeyError as exc:
            raise BuilderScriptError(
                f"No builder script is registered for epoch: {epoch.adapter_name}."
            ) from exc

    def _load(self) -> dict[Epoch, BuilderScript]:
        with self._lock:
            if self._scripts is None:
                self._scripts = self._read_definitions()
            return self._scripts

    def _read_definitions(self) -> dict[Epoch, BuilderScript]:
        if not self.definitions_dir.is_dir():
            raise BuilderScriptError(
                f"Builder script definitions directory was not found: {self.definitions_dir}"
            )

        scripts_root = self.definitions_dir.parent
        result: dict[Epoch, BuilderScript] = {}
        owners: dict[Epoch, Path] = {}
        for definition_path in sorted(self.definitions_dir.glob(DEFINITION_GLOB)):
            script, epochs = self._read_definition(definition_path, scripts_root)
            for epoch in epochs:
                if epoch in result:
                    raise BuilderScriptError(
                        f"More than one builder script is registered for epoch "
                        f"'{epoch.adapter_name}' ({owners[epoch].name}, {definition_path.name})."
                    )
                result[epoch] = script
                owners[epoch] = definition_path
            logger.debug("Loaded builder script definition %s", definition_path.name)

        if not result:
            raise BuilderScriptError(
                f"No builder script definitions were found in '{self.definitions_dir}'."
            )
        return result

    def _read_definition(
        self, path: Path, scripts_root: Path
    ) -> tuple[BuilderScript, list[Epoch]]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise BuilderScriptError(f"Cannot parse builder script definition: {path}") from exc
        if not isinstance(data, dict):
            raise BuilderScriptError(f"Cannot parse builder script definition: {path}")

        _required_text(data, "id", path)
        source_file = _required_text(data, "sourceFile", path)
        entry_method = _required_text(data, "entryMethod", path)
        output_name = _lookup(data, "outputFileName")
        if not isinstance(output_name, str) or not output_name.strip():
            output_name = DEFAULT_OUTPUT_FILE_NAME

        raw_epochs = _lookup(data, "epochs")
        if not isinstance(raw_epochs, list) or not raw_epochs:
            raise BuilderScriptError(f"epochs list is empty in: {path}")
        epochs: list[Epoch] = []
        for token in raw_epochs:
            try:
                epoch = Epoch.from_token(str(token))
            except ConfigurationError as exc:
                raise BuilderScriptError(
                    f"Unknown epoch token in builder script definition: {token}"
                ) from exc
            if epoch not in epochs:
                epochs.append(epoch)

        source_path = Path(source_file)
        if not source_path.is_absolute():
            source_path = (scripts_root / source_path).resolve()
        if not source_path.is_file():
            raise BuilderScriptError(
                f"Builder script source file declared in '{path}' was not found: {source_path}"
            )

        script = BuilderScript(
            source_code=source_path.read_text(encoding="utf-8"),
            entry_method=entry_method,
            output_file_name=output_name.strip(),
        )
        return script, epochs


_DEFAULT_REGISTRY: BuilderScriptRegistry | None = None
_DEFAULT_LOCK = Lock()


def default_registry() -> BuilderScriptRegistry:
    """Return the process-wide registry backed by the bundled definitions."""
    global _DEFAULT_REGISTRY
    with _DEFAULT_LOCK:
        if _DEFAULT_REGISTRY is None:
            _DEFAULT_REGISTRY = BuilderScriptRegistry()
        return _DEFAULT_REGISTRY


__all__ = [
    "DEFAULT_OUTPUT_FILE_NAME",
    "BuilderScript",
    "BuilderScriptRegistry",
    "default_registry",
]
