import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import socketio

from config import get_settings
from api.audio import router as audio_router
from api.playback import router as playback_router
from api.surahs import router as surahs_router
from services.scheduler import start_scheduler, shutdown_scheduler
from services.session_tracker import close_session_store
from ws.events import sio

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Tilawah backend...")
    start_scheduler()
    logger.info("Tilawah backend ready")
    yield
    # Shutdown
    shutdown_scheduler()
    await close_session_store()
    logger.info("Tilawah backend shut down")


app = FastAPI(
    title="Tilawah API",
    description="Verse-by-verse Quran recitation practice",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(surahs_router)
app.include_router(audio_router)
app.include_router(playback_router)

# Mount Socket.IO
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)

# Health check
@app.get("/health")
async def health():
    return {"status": "ok", "service": "tilawah"}


# Export the ASGI app (uvicorn should point to this)
application = socket_app
