"""StreamSession — re-decode a growing buffer on every appended chunk.

Each ``feed`` runs the full partial pipeline (repair, decode, validate,
union-check) over the entire accumulated buffer rather than patching the
previous result.  ``feed`` and ``reset`` on one session are serialized by
a lock; independent sessions share nothing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fieldwise.domain.results import PartialResult
    from fieldwise.validator import Validator

logger = logging.getLogger(__name__)

CompletionCallback = Callable[["PartialResult"], None]


class StreamSession:
    """One logical message arriving in chunks.

    Usage::

        session = validator.stream(on_complete=handle)
        for chunk in token_source:
            result = session.feed(chunk)
            show(result.value, result.waiting_for())
    """

    def __init__(self, validator: Validator, on_complete: CompletionCallback | None = None) -> None:
        self._validator = validator
        self._on_complete = on_complete
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._completed = False

    def feed(self, chunk: bytes | str) -> PartialResult:
        """Append *chunk* and decode everything received so far.

        The completion callback fires exactly once, on the first feed
        whose result is complete, after the session lock is released.
        """
        data = chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
        with self._lock:
            self._buffer.extend(data)
            size = len(self._buffer)
            result = self._validator.decode_partial(bytes(self._buffer))
            first_completion = result.is_complete and not self._completed
            if first_completion:
                self._completed = True
        if first_completion:
            self._fire_completion(result, size)
        return result

    def reset(self) -> None:
        """Empty the buffer and re-arm the completion callback."""
        with self._lock:
            self._buffer.clear()
            self._completed = False

    @property
    def buffer(self) -> bytes:
        with self._lock:
            return bytes(self._buffer)

    @property
    def completed(self) -> bool:
        return self._completed

    def _fire_completion(self, result: PartialResult, size: int) -> None:
        logger.debug("Stream for %s complete after %d bytes", self._validator.type_name, size)
        self._validator.notify_stream_complete(size)
        if self._on_complete is not None:
            self._on_complete(result)
