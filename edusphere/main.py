import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from edusphere.api.v1.analytics.router import router as analytics_router
from edusphere.api.v1.assignments.router import router as assignments_router
from edusphere.api.v1.attendance.router import router as attendance_router
from edusphere.api.v1.auth.router import router as auth_router
from edusphere.api.v1.certificates.router import router as certificates_router
from edusphere.api.v1.classes.router import router as classes_router
from edusphere.api.v1.fees.router import router as fees_router
from edusphere.api.v1.grades.router import router as grades_router
from edusphere.api.v1.holidays.router import router as holidays_router
from edusphere.api.v1.notices.router import router as notices_router
from edusphere.api.v1.notifications.router import router as notifications_router
from edusphere.api.v1.schools.router import router as schools_router
from edusphere.api.v1.users.router import router as users_router
from edusphere.core.config import settings
from edusphere.core.logging import add_logging_middleware, setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="EduSphere Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_logging_middleware(app)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "The change could not be saved. Please try again."},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Routers
    app.include_router(auth_router)
    app.include_router(schools_router)
    app.include_router(users_router)
    app.include_router(classes_router)
    app.include_router(notifications_router)
    app.include_router(fees_router)
    app.include_router(holidays_router)
    app.include_router(grades_router)
    app.include_router(attendance_router)
    app.include_router(notices_router)
    app.include_router(assignments_router)
    app.include_router(certificates_router)
    app.include_router(analytics_router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
