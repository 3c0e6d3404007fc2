from fastapi import Request
from fastapi.responses import JSONResponse


class FinflowError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FinflowError):
    status_code = 404


class ConflictError(FinflowError):
    status_code = 409


class ValidationError(FinflowError):
    status_code = 422


class AuthError(FinflowError):
    status_code = 401


async def finflow_error_handler(request: Request, exc: FinflowError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)
