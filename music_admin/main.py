from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from music_admin.core.config import settings
from music_admin.core.errors import ActionUnavailable, BackendError, SessionExpired
from music_admin.api import admin, auth, bookings, reports
from music_admin.core.logger import setup_logging, logger
from music_admin.models.admin_models import Notice
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} against {settings.API_BASE_URL}")
    yield
    # Shutdown
    logger.info("🛑 Shutting down admin backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

def _notice(status_code: int, notice: Notice) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=notice.model_dump())

@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    # Failed mutation or fetch: transient, recoverable notification
    status_code = exc.status_code if exc.status_code and 400 <= exc.status_code < 600 else 502
    return _notice(status_code, Notice(variant="destructive", title="Error", description=exc.message))

@app.exception_handler(ActionUnavailable)
async def action_unavailable_handler(request: Request, exc: ActionUnavailable):
    return _notice(409, Notice(variant="destructive", title="Error", description=exc.message))

@app.exception_handler(SessionExpired)
async def session_expired_handler(request: Request, exc: SessionExpired):
    logger.warning(f"🔒 Session ended on {request.url.path}: {exc.message}")
    return _notice(401, Notice(variant="destructive", title="Session expired", description=exc.message, redirect=exc.redirect))

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

app.include_router(auth.router, tags=["Auth"])
app.include_router(admin.router, tags=["Admin"])
app.include_router(bookings.router, tags=["Bookings"])
app.include_router(reports.router, tags=["Reports"])

@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "backend": settings.API_BASE_URL, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("music_admin.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
