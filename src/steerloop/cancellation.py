"""Cooperative cancellation for loop runs."""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe cancellation signal.

    The loop checks the token at the top of each attempt only; an
    in-flight generate/validate call is never interrupted. One token may
    be shared by several runs (sync or async).

    Usage::

        token = CancellationToken()
        threading.Timer(30, token.cancel).start()
        outcome = loop.run(request, gen, val, policy, cancel_token=token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None
        self._lock = threading.Lock()

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation. The first reason given wins."""
        with self._lock:
            if not self._event.is_set():
                self._reason = reason
                self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns cancelled."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        state = f"cancelled: {self._reason}" if self.cancelled else "active"
        return f"CancellationToken({state})"
