"""CancellationToken: cooperative cancellation for a mapping call.

The mapper checks the token at every stage boundary; the embedding adapter
also polls it while waiting on provider requests.  Cancelling from another
thread makes the running call raise ``MappingCancelled``.
"""

from __future__ import annotations

import threading

from json_shapeshift.errors import MappingCancelled

__all__ = ["CancellationToken"]


class CancellationToken:
    """Thread-safe, one-shot cancellation flag.

    Example::

        token = CancellationToken()
        threading.Timer(5.0, token.cancel).start()
        mapper.map(source, template, cancel_token=token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str = "") -> None:
        """Raise ``MappingCancelled`` if ``cancel()`` has been called."""
        if self._event.is_set():
            where = f" during {stage}" if stage else ""
            raise MappingCancelled(f"Mapping cancelled{where}")
