from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from expense_tracker import api
from expense_tracker.api import include_routers
from expense_tracker.core.config import settings
from expense_tracker.core.logging import setup_logging, get_logger
from expense_tracker.database import init_databases, close_databases
from expense_tracker.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from expense_tracker.middleware.logging_middleware import LoggingMiddleware
from expense_tracker.middleware.rate_limiting import RateLimitMiddleware
from expense_tracker.middleware.security import SecurityHeadersMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    await init_databases()
    yield
    # Shutdown
    await close_databases()
    logger.info("Server shut down")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan
    )

    # 마지막에 추가한 미들웨어가 가장 바깥쪽
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    include_routers(app, "api", api.__path__)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "expense_tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
