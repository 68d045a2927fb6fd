"""Exception hierarchy shared across services."""


class LLMException(Exception):
    """Base error for generative model invocation failures."""


class LLMConnectionError(LLMException):
    """Raised when the model endpoint cannot be reached."""


class LLMTimeoutError(LLMException):
    """Raised when the model endpoint does not answer in time."""


class DatastoreError(Exception):
    """Raised by repositories when a read or write against the datastore fails."""
