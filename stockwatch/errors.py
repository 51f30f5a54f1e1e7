"""Exceptions raised by fetchers, storage and the check pipeline."""


class StockwatchError(Exception):
    """Base class for all stockwatch errors."""


class FetchError(StockwatchError):
    """Page content could not be retrieved."""


class FetchTimeout(FetchError):
    """A retrieval channel did not answer within its timeout."""


class FetchHttpError(FetchError):
    """A retrieval channel answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


class FetchContentInvalid(FetchError):
    """A retrieval channel returned an empty, short or unreadable payload."""


class AllChannelsExhausted(FetchError):
    """Direct retrieval and every fallback channel failed."""

    def __init__(self, last_error: Exception | None, attempted: list[str]):
        self.last_error = last_error
        self.attempted = list(attempted)
        tried = ", ".join(self.attempted) or "none"
        super().__init__(f"all channels failed (tried: {tried}); last error: {last_error}")


class StorageError(StockwatchError):
    """Product storage could not be read."""


class StorageWriteFailure(StorageError):
    """Product storage rejected a write."""


class ProductNotFound(StockwatchError, LookupError):
    """No tracked product has the requested id."""


class DuplicateProduct(StockwatchError):
    """A product with the same url is already tracked."""
