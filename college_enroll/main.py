import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from college_enroll.core.config import get_settings
from college_enroll.core.error_handlers import register_error_handlers
from college_enroll.core.logging_middleware import LoggingMiddleware
from college_enroll.db.init_db import init_db

from college_enroll.routers.admin import router as admin_router
from college_enroll.routers.colleges import router as colleges_router
from college_enroll.routers.courses import router as courses_router
from college_enroll.routers.enrollments import router as enrollments_router
from college_enroll.routers.students import router as students_router

settings = get_settings()

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    yield


app = FastAPI(title=settings.project_name, lifespan=lifespan)

register_error_handlers(app)

# Middleware
app.add_middleware(LoggingMiddleware)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Include routers
app.include_router(colleges_router, prefix="/colleges", tags=["colleges"])
app.include_router(students_router, prefix="/students", tags=["students"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(enrollments_router, prefix="/enrollments", tags=["enrollments"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
