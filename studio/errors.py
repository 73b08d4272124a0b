"""Exceptions raised by the studio library and SDK."""


class StudioError(Exception):
    """Base class for all studio errors."""
    pass


# --- client-side validation ---


class NodeValidationError(StudioError):
    """A node draft is not fit to be saved.

    ``code`` is a stable identifier; the message is meant for the user.
    """

    code = "ValidationError"


class NameRequiredError(NodeValidationError):
    code = "NameRequired"

    def __init__(self, message: str = "Node name is required") -> None:
        super().__init__(message)


class AtLeastOneStepRequiredError(NodeValidationError):
    code = "AtLeastOneStepRequired"

    def __init__(self, message: str = "At least one step is required") -> None:
        super().__init__(message)


class InvalidParameterNameError(NodeValidationError):
    code = "InvalidParameterName"


class DuplicateParameterError(NodeValidationError):
    code = "DuplicateParameter"


class ParameterValueError(StudioError):
    """An override value does not match its parameter definition."""
    pass


class StepsLockedError(StudioError):
    """Steps were edited while the override session is locked."""
    pass


class TemplateReferenceError(StudioError):
    """A ``{{...}}`` token is malformed."""
    pass


class UnresolvedReferenceError(StudioError):
    """A ``{{...}}`` token points at a value that does not exist."""
    pass


# --- API responses ---


class ApiError(StudioError):
    """A request to the studio API failed.

    ``message`` is the server's ``error`` string when it sent one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(ApiError):
    """401: no authenticated user."""
    pass


class PermissionDeniedError(ApiError):
    """403: the resource is system, immutable or owned by someone else."""
    pass


class NotFoundError(ApiError):
    """404: the resource does not exist."""
    pass


class ConflictError(ApiError):
    """409: an id is already taken."""
    pass


class NetworkOrServerError(ApiError):
    """Transport failure or any other non-2xx response."""
    pass
