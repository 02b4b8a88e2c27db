class SyncError(Exception):
    """Base exception for the sync module."""
    pass


class SyncPayloadError(SyncError):
    """Raised when a submitted batch is malformed; nothing is enqueued."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class SyncContentError(SyncError):
    """Raised while applying a batch; the job is marked failed."""
    pass


class SyncClientError(SyncError):
    """Raised by the submitter when a request cannot be delivered or a job did not succeed."""

    def __init__(self, message, status_code=None, retriable=False):
        super().__init__(message)
        self.status_code = status_code
        self.retriable = retriable
