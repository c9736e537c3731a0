"""
Fan one readable body out to two consumers without reading it twice from the store.

The primary branch is a non-seekable file-like object suitable for
``upload_fileobj``. Every chunk it yields is spooled (memory first, disk past
``spool_max_bytes``) so the replay branch can serve the same bytes afterwards.
"""
import tempfile
from typing import Iterator

DEFAULT_CHUNK_SIZE = 64 * 1024


class _TeeState:
    def __init__(self, source, spool_max_bytes: int):
        self.source = source
        self.spool = tempfile.SpooledTemporaryFile(max_size=spool_max_bytes)
        self.exhausted = False

    def pull(self, size: int) -> bytes:
        if self.exhausted:
            return b""
        chunk = self.source.read(size) if size and size > 0 else self.source.read()
        if chunk:
            self.spool.write(chunk)
        else:
            self.exhausted = True
            close = getattr(self.source, "close", None)
            if close is not None:
                close()
        return chunk


class TeeReader:
    """Primary branch: a read-once, non-seekable view of the source."""

    def __init__(self, state: _TeeState):
        self._state = state

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while True:
                chunk = self._state.pull(DEFAULT_CHUNK_SIZE)
                if not chunk:
                    break
                parts.append(chunk)
            return b"".join(parts)
        return self._state.pull(size)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False


class ReplayReader:
    """Secondary branch: iterates the same bytes once the primary branch is drained."""

    def __init__(self, state: _TeeState, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._state = state
        self._chunk_size = chunk_size

    def __iter__(self) -> Iterator[bytes]:
        # Drain anything the primary branch left unread.
        while self._state.pull(self._chunk_size):
            pass
        spool = self._state.spool
        spool.seek(0)
        try:
            while True:
                chunk = spool.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            spool.close()

    def read(self) -> bytes:
        return b"".join(self)

    def close(self) -> None:
        self._state.spool.close()


def tee(source, spool_max_bytes: int = 1024 * 1024) -> tuple[TeeReader, ReplayReader]:
    state = _TeeState(source, spool_max_bytes)
    return TeeReader(state), ReplayReader(state)
