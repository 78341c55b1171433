from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from app.api.v1.assessments.router import router as assessments_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.clients.router import router as clients_router
from app.api.v1.credit_notes.router import router as credit_notes_router
from app.api.v1.invoices.router import router as invoices_router
from app.api.v1.recurring_invoices.router import router as recurring_invoices_router
from app.api.v1.report_cards.router import router as report_cards_router
from app.api.v1.reports.router import router as reports_router
from app.api.v1.settings.router import router as settings_router
from app.api.v1.statements.router import router as statements_router
from app.api.v1.students.router import router as students_router
from app.api.v1.subjects.router import router as subjects_router
from app.core.config import settings
from app.core.exceptions import RemoteCallError
from app.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    # Raw driver error stays in the log; the client gets a retryable message
    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        error=str(getattr(exc, "orig", None) or exc),
        exc_info=exc,
    )
    err = RemoteCallError()
    return JSONResponse(status_code=err.status_code, content={"detail": err.message})


def create_app() -> FastAPI:
    configure_logging(settings.log_level, settings.log_json)
    app = FastAPI(title="School & Business Administration API")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(DBAPIError, database_unavailable_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(settings_router)
    app.include_router(clients_router)
    app.include_router(invoices_router)
    app.include_router(credit_notes_router)
    app.include_router(recurring_invoices_router)
    app.include_router(statements_router)
    app.include_router(reports_router)
    app.include_router(students_router)
    app.include_router(subjects_router)
    app.include_router(assessments_router)
    app.include_router(report_cards_router)

    return app


app = create_app()
