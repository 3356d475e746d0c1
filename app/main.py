import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    admin_router,
    problems_router,
    submissions_router,
    system_router,
)
from domain.errors import CodeJudgeError
from .db import init_db
from .settings import APP_DESCRIPTION, APP_TITLE, APP_VERSION, AUTO_CREATE_TABLES, CORS_ALLOW_ORIGINS, JUDGE_API_URL
from .auth import router as auth_router

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CodeJudgeError)
async def codejudge_error_handler(request: Request, exc: CodeJudgeError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION}...")
    logger.info(f"Judge service: {JUDGE_API_URL}")

    if AUTO_CREATE_TABLES:
        init_db()
        logger.info("Database tables ensured")

    logger.info("Startup complete")


app.include_router(auth_router)
app.include_router(problems_router)
app.include_router(submissions_router)
app.include_router(admin_router)
app.include_router(system_router)


__all__ = ["app"]
