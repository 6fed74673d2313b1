from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}

_DEFAULT_MESSAGES = {
    ErrorKind.VALIDATION: "Invalid request",
    ErrorKind.UNAUTHORIZED: "Please authenticate",
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.CONFLICT: "Already exists",
    ErrorKind.INTERNAL: "Internal server error",
}
