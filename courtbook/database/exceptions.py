"""
Exception hierarchy for remote document store operations.

Repositories translate botocore failures into these so callers can tell a
missing record, an overloaded table and a dead network apart.
"""


class RemoteStoreError(Exception):
    """
    Base exception for all remote store errors.

    Raised directly for failures with no more specific category.
    """

    pass


class NotFoundError(RemoteStoreError):
    """
    Raised when a requested document does not exist.

    Repository getters return None for missing items; this is raised by
    callers that require the document, such as profile lookup at login.
    """

    pass


class ThrottlingError(RemoteStoreError):
    """Raised when the table keeps throttling after retry exhaustion."""

    pass


class NetworkError(RemoteStoreError):
    """Raised on connection timeouts, DNS failures and other transport errors."""

    pass


class AccessDeniedError(RemoteStoreError):
    """
    Raised when IAM permissions are insufficient for the operation.

    A configuration problem; retrying will not help.
    """

    pass
