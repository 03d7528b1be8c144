import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from boom.config import get_settings
from boom.routers import auth, media, users, videos
from boom.services.transfer_errors import InfrastructureError, TransferError

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Boom Video API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TransferError)
async def transfer_error_handler(request: Request, exc: TransferError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    """Locked or unreachable database outside a transfer (auth, lookups, uploads)."""
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc.orig)
    error = InfrastructureError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(users.router)
app.include_router(media.router)


@app.get("/")
def root():
    return {"message": "Boom Video API", "docs": "/docs"}
