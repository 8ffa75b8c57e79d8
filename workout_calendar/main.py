from fastapi import FastAPI
import logging
import os
from pathlib import Path

from workout_calendar.database import engine, Base
from workout_calendar import models  # Import all models to register them with Base
from workout_calendar.routes import router as calendar_router
from workout_calendar.services.scheduler_service import start_scheduler, stop_scheduler
from workout_calendar.constants import DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV

LOG_DIR = os.getenv("WORKOUT_CALENDAR_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("WORKOUT_CALENDAR_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("workout_calendar")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Workout Calendar API",
    description="Local-first workout calendar with streak tracking",
    version="1.0.0"
)

app.include_router(calendar_router)


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"Workout Calendar API started. Logging to: {log_path}")
    start_scheduler()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Workout Calendar API")
    stop_scheduler()


# Health check
@app.get("/")
async def root():
    return {"message": "Workout Calendar API", "status": "active"}
