"""
Constants and environment-driven configuration for the workout calendar engine.
"""
import os

# Storage keys (one JSON blob per key)
CALENDAR_STORAGE_KEY = "@gymvy_workout_calendar"
FREE_REST_DAY_STORAGE_KEY = "@gymvy_free_rest_day_last_used"

# Retention
DEFAULT_RETENTION_DAYS = 60
RETENTION_DAYS = int(os.getenv("WORKOUT_CALENDAR_RETENTION_DAYS", DEFAULT_RETENTION_DAYS))

# Display grid
GRID_DAYS = 28
DAYS_PER_WEEK = 7
MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"
]

# Remote session classification
REST_DAY_TYPE = "rest_day"
REST_DAY_NAME = "Rest Day"

# Database
DEFAULT_DB_DIRECTORY = "/var/lib/workout-calendar"
DB_DIR = os.getenv("WORKOUT_CALENDAR_DB_DIR", DEFAULT_DB_DIRECTORY)
DB_FILE = "calendar.db"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/workout-calendar"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# Scheduler
PRUNE_HOUR = int(os.getenv("WORKOUT_CALENDAR_PRUNE_HOUR", 3))
