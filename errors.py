"""Error kinds shared by the store, the GraphQL layer and the client."""

from fastapi import status


class PostError(Exception):
    code = "INTERNAL_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> dict[str, str]:
        return {"code": self.code}


class ValidationError(PostError):
    code = "VALIDATION_ERROR"
    http_status = status.HTTP_422_UNPROCESSABLE_CONTENT

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class StorageUnavailable(PostError):
    code = "STORAGE_UNAVAILABLE"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class NetworkError(PostError):
    code = "NETWORK_ERROR"
    http_status = status.HTTP_502_BAD_GATEWAY


class OperationError(PostError):
    """Any other error reported by the API, e.g. a query that fails validation."""


class SchemaMismatch(RuntimeError):
    def __init__(self, problems: list[str]):
        super().__init__("GraphQL schema does not match the contract: " + "; ".join(problems))
        self.problems = problems


ERRORS_BY_CODE: dict[str, type[PostError]] = {
    ValidationError.code: ValidationError,
    StorageUnavailable.code: StorageUnavailable,
}
