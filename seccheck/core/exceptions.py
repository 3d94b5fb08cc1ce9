class SecurityCheckError(Exception):
    """Base class for all security-check domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except SecurityCheckError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class ValidationError(SecurityCheckError):
    """Raised when caller input has the wrong shape.

    Always surfaced to the caller and never retried.
    """

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(detail)


class InvalidStatusError(ValidationError):
    """Raised when a lead status outside ``LEAD_STATUSES`` is requested."""

    def __init__(self, detail: str = "Invalid status"):
        super().__init__(detail)


class NotFoundError(SecurityCheckError):
    """Raised when a requested record does not exist."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(detail)


class LeadNotFoundError(NotFoundError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class StorageError(SecurityCheckError):
    """Raised when an authoritative write (the lead row itself) fails.

    The underlying driver exception is chained via ``raise ... from`` so
    that handlers can log the cause.
    """

    def __init__(self, detail: str = "Storage failure"):
        super().__init__(detail)


class PurgeDisabledError(SecurityCheckError):
    """Raised when the admin purge is requested but switched off."""

    def __init__(self, detail: str = "Purge is disabled for this deployment"):
        super().__init__(detail)
