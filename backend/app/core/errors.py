from __future__ import annotations

from typing import Any, Iterable

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    500: "INTERNAL_ERROR",
}

GENERIC_ERROR_MESSAGE = "Error interno del servidor"
INVALID_DATA_MESSAGE = "Datos inválidos"


def error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


def first_error_message(errors: Iterable[dict[str, Any]]) -> str:
    """
    "<field>: <message>" for the first validation error (pydantic/FastAPI shape).
    """
    for err in errors:
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg") or INVALID_DATA_MESSAGE
        return f"{field}: {msg}" if field else msg
    return INVALID_DATA_MESSAGE
