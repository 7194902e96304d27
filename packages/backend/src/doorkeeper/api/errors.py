"""Exception handlers — core errors to HTTP responses.

Learn: The core raises plain Python exceptions and knows nothing about
HTTP. This module is the one place that decides status codes:
- ValidationError → 422 (409 if the only problem is a taken email)
- AuthenticationFailure → 401 with a generic message
- AuthorizationFailure → 401 "You must be logged in"
- IdentityNotFound → 404
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from doorkeeper.auth.errors import (
    AuthenticationFailure,
    AuthorizationFailure,
    IdentityNotFound,
    ValidationCode,
    ValidationError,
)


async def validation_error_handler(request: Request, exc: ValidationError):
    status = 422
    if exc.codes == (ValidationCode.DUPLICATE_IDENTIFIER,):
        status = 409
    return JSONResponse(
        status_code=status,
        content={
            "detail": {
                "errors": [c.value for c in exc.codes],
                "messages": exc.messages,
            }
        },
    )


async def authentication_failure_handler(request: Request, exc: AuthenticationFailure):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


async def authorization_failure_handler(request: Request, exc: AuthorizationFailure):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


async def identity_not_found_handler(request: Request, exc: IdentityNotFound):
    return JSONResponse(status_code=404, content={"detail": "Identity not found"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AuthenticationFailure, authentication_failure_handler)
    app.add_exception_handler(AuthorizationFailure, authorization_failure_handler)
    app.add_exception_handler(IdentityNotFound, identity_not_found_handler)
