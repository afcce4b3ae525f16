from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import router as v1_router
from app.config import settings
from app.database import engine
from app.exceptions import DriveError
from app.logging_config import setup_logging
from app.schemas.common import ErrorResponse

# Setup application logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 連線池在啟動時建立一次，關閉時釋放
    logger.info("Drive API starting")
    yield
    engine.dispose()
    logger.info("Drive API stopped, connection pool disposed")


app = FastAPI(title="Drive API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 所有透過v1_router定義的endpoint都會加上/api/v1前綴
app.include_router(v1_router, prefix="/api/v1")


@app.exception_handler(DriveError)
async def drive_exception_handler(request: Request, exc: DriveError):
    """Map domain errors to the structured error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error, message=exc.message).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Unwrap the 'detail' field from HTTPException responses."""
    content = exc.detail

    if isinstance(content, dict):
        return JSONResponse(status_code=exc.status_code, content=content)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error="Unauthorized" if exc.status_code == 401 else "Error",
            message=str(content),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # 把完整的錯誤堆疊記錄下來，並附上API路徑和HTTP方法
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Return safe, static message to client (no internal details exposed)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            message="An unexpected error occurred",
        ).model_dump(),
    )
