from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from college_enroll.core.errors import AppError


async def app_error_handler(request: Request, exc: AppError):
    content = {
        "error_kind": exc.kind.value,
        "message": exc.message,
        "detail": exc.detail(),
    }
    conflicts = exc.conflicts()
    if conflicts is not None:
        content["conflicts"] = [c.model_dump(mode="json") for c in conflicts]
    return JSONResponse(status_code=exc.status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
