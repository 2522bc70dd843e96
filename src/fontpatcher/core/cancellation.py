"""Cooperative cancellation shared by polling loops and worker pools."""

from __future__ import annotations

from threading import Event

from .exceptions import OperationCancelled


class CancellationToken:
    """Thin wrapper around :class:`threading.Event` with raising helpers.

    Every polling point in the toolchain (log tail, installer drain,
    executable unlock wait, subprocess wait, batch loop) sleeps through
    :meth:`sleep` so that a single :meth:`cancel` call interrupts the whole
    run promptly.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation was cancelled.")

    def wait(self, seconds: float) -> bool:
        """Wait for ``seconds``; return ``True`` early when cancelled."""
        return self._event.wait(max(0.0, seconds))

    def sleep(self, seconds: float) -> None:
        """Wait for ``seconds`` or until cancelled, raising on cancellation."""
        if self._event.wait(max(0.0, seconds)):
            raise OperationCancelled("Operation was cancelled.")


def ensure_token(token: CancellationToken | None) -> CancellationToken:
    """Return ``token`` or a fresh token nobody else can cancel."""
    return token if token is not None else CancellationToken()


__all__ = ["CancellationToken", "ensure_token"]
