"""FastAPI application entry point"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import sync, websocket
from .services.polling import poller
from .services.task_store import task_store
from .services.training_api import training_api
from .websocket.manager import ws_manager

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting training sync against {training_api.settings.training_server}")
    task_store.add_callback(ws_manager.on_store_change)
    poller.start()

    yield

    poller.stop()
    task_store.remove_callback(ws_manager.on_store_change)
    await training_api.aclose()
    logger.info("Shutting down training sync")


app = FastAPI(
    title="Training Sync API",
    description="Locally synchronized view of a remote training server",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sync.router)
app.include_router(websocket.router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "training-sync",
        "version": "0.1.0",
        "polling": poller.is_running,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trainsync.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8100")),
        log_level="info"
    )
