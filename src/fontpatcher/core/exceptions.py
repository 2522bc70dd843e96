"""Custom exception hierarchy for the font conversion toolchain."""

from __future__ import annotations


class FontPatcherError(RuntimeError):
    """Base exception for conversion and provisioning failures."""


class ConfigurationError(FontPatcherError):
    """Raised when options or input documents are invalid."""


class VersionFormatError(ConfigurationError):
    """Raised when a string does not follow the Editor version grammar."""


class JobDocumentError(ConfigurationError):
    """Raised when a batch job document cannot be loaded or merged."""


class AdapterRegistryError(ConfigurationError):
    """Raised when no epoch adapter is registered for a resolved epoch."""


class BuilderScriptError(ConfigurationError):
    """Raised when builder script definitions are missing or inconsistent."""


class EditorNotFoundError(FontPatcherError):
    """Raised when an explicitly requested Editor executable does not exist."""


class ProvisioningError(FontPatcherError):
    """Raised when no compatible Editor can be located or installed."""


class HubError(ProvisioningError):
    """Raised when the Hub cannot be located, installed, or driven."""


class EditorExecutionError(FontPatcherError):
    """Raised when an Editor invocation exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        log_tail: str = "",
        licensing: bool = False,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.log_tail = log_tail
        self.licensing = licensing


class ArtifactMissingError(FontPatcherError):
    """Raised when the Editor reports success but produced no bundle."""


class OperationCancelled(FontPatcherError):
    """Raised when a cancellation request interrupts a running operation."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "AdapterRegistryError",
    "ArtifactMissingError",
    "BuilderScriptError",
    "ConfigurationError",
    "EditorExecutionError",
    "EditorNotFoundError",
    "FontPatcherError",
    "HubError",
    "JobDocumentError",
    "OperationCancelled",
    "ProvisioningError",
    "VersionFormatError",
    "exception_hint",
    "exception_messages",
]
