"""Exceptions raised by storage backends and the benchmark harness."""


class BackendError(Exception):
    """Base exception for storage backend operations."""
    pass


class InvalidHandleError(BackendError):
    """Handle has an unknown type or an unusable name."""
    pass


class NotFoundError(BackendError):
    """No object is stored under the handle."""

    def __init__(self, handle):
        self.handle = handle
        super().__init__(f"{handle} does not exist")


class RangeError(BackendError):
    """Requested window lies outside the stored blob."""

    def __init__(self, handle, offset: int, length: int, size: int | None = None):
        self.handle = handle
        self.offset = offset
        self.length = length
        self.size = size
        size_str = "unknown size" if size is None else f"size {size}"
        super().__init__(
            f"invalid range for {handle}: offset {offset}, length {length} ({size_str})"
        )


class ShortReadError(BackendError):
    """Stream ended before delivering the requested number of bytes."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"short read: wanted {expected} bytes, got {actual}")


class BackendIOError(BackendError):
    """Transport or storage failure reported by the provider."""
    pass


class VerificationError(Exception):
    """Bytes returned by a backend differ from the source fixture."""

    def __init__(self, handle, detail: str):
        self.handle = handle
        self.detail = detail
        super().__init__(f"verification failed for {handle}: {detail}")


class ScenarioError(Exception):
    """A benchmark or conformance scenario aborted.

    Carries the scenario name, the phase that failed (setup, save, load,
    remove, verify or cleanup) and the handle involved, if any.
    """

    def __init__(self, scenario: str, phase: str, cause: BaseException, handle=None):
        self.scenario = scenario
        self.phase = phase
        self.cause = cause
        self.handle = handle
        where = f" ({handle})" if handle is not None else ""
        super().__init__(f"{scenario}: {phase} failed{where}: {cause}")
