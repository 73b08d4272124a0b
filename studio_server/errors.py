"""JSON error bodies.

Every failed request answers with ``{"error": "<message>"}`` (plus
``message`` for internal failures), which is what the SDK reads.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException


def validation_message(exc: ValidationError | RequestValidationError) -> str:
    """One readable line for a pydantic failure.

    Messages raised by our own validators are used as-is; built-in ones are
    prefixed with the field they refer to.
    """
    messages = []
    for err in exc.errors():
        ctx_error = (err.get("ctx") or {}).get("error")
        if ctx_error:
            messages.append(str(ctx_error))
            continue
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(messages)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(content, status_code=exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": validation_message(exc)}, status_code=400)
