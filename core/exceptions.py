"""
Domain errors raised by the service layer.

Every failing mutation raises one of these; read-only lookups return None
for "absent". The API turns them into ``{"success": false, ...}`` bodies.
"""


class ServiceError(Exception):
    code = "ServiceError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    code = "NotFound"
    status_code = 404


class InvalidStateError(ServiceError):
    code = "InvalidState"
    status_code = 409


class InactivePackageError(InvalidStateError):
    code = "Inactive"


class EmptyPackageError(InvalidStateError):
    code = "EmptyPackage"


class SessionAlreadyCompletedError(InvalidStateError):
    code = "AlreadyCompleted"


class PackageAlreadyDeletedError(InvalidStateError):
    code = "AlreadyDeleted"


class UnknownQuestionError(ServiceError):
    code = "UnknownQuestion"
    status_code = 400


class DuplicateAnswerError(ServiceError):
    code = "DuplicateAnswer"
    status_code = 400


class ConflictError(ServiceError):
    code = "Conflict"
    status_code = 409


class PermissionDeniedError(ServiceError):
    code = "PermissionDenied"
    status_code = 403


class AuthenticationError(ServiceError):
    code = "Unauthorized"
    status_code = 401
