"""
Levelminds Recruitment API
==========================
Connects schools with student candidates

Flow:
1. Admin defines core skills, categories and assesses students
2. Schools post jobs under a category
3. Students see jobs whose category shares a core skill they were assessed on
4. Students apply; schools shortlist, schedule interviews or reject
5. Every status change notifies the student in-app and by email
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from levelminds.api import api_router
from levelminds.core.config import settings
from levelminds.core.database import init_db
from levelminds.core.errors import LevelmindsError
from levelminds.core.logging import setup_logging
from levelminds.schemas import envelope


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize logging and database on startup"""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME}...")
    init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down...")


def _validation_errors(errors) -> list:
    """Pydantic error list as [{field, message}] pairs"""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path", "form")),
            "message": error["msg"],
        }
        for error in errors
    ]


def setup_exception_handlers(app: FastAPI) -> None:
    """Render every failure in the {success, message, data} envelope"""

    @app.exception_handler(LevelmindsError)
    async def domain_error_handler(request: Request, exc: LevelmindsError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(exc.message, exc.data, success=False)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=envelope("Validation failed", {"errors": _validation_errors(exc.errors())}, success=False)
        )

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        # Raised when routes build schemas from form fields themselves
        return JSONResponse(
            status_code=400,
            content=envelope("Validation failed", {"errors": _validation_errors(exc.errors())}, success=False)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(str(exc.detail), success=False)
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=envelope("An unexpected error occurred.", success=False)
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
## Levelminds Recruitment API

### Features:
- **Skill Taxonomy**: Core skills with up to four sub-skills, grouped into job categories
- **Assessments**: Per-student marks on every sub-skill of a core skill
- **Skill Matching**: Students only see jobs in categories they were assessed for
- **Applications**: applied -> shortlisted -> interview scheduled, or rejected
- **Interviews**: One interview per application at the school's address
- **Bulk Uploads**: Spreadsheet-driven user creation and mark uploads
        """,
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": settings.APP_NAME}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("levelminds.main:app", host="0.0.0.0", port=8000, reload=True)
