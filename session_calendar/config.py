import os
from pathlib import Path

from dotenv import load_dotenv

# Load the .env file sitting next to this package
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL not set")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Booking rules
DEFAULT_OCCURRENCES = int(os.getenv("DEFAULT_OCCURRENCES", "5"))
MIN_DURATION_MINUTES = int(os.getenv("MIN_DURATION_MINUTES", "15"))
MAX_DURATION_MINUTES = int(os.getenv("MAX_DURATION_MINUTES", "480"))  # 8 hours
EARLY_JOIN_MINUTES = int(os.getenv("EARLY_JOIN_MINUTES", "5"))

# Reminder offsets offered by the booking form, in minutes before start
REMINDER_CHOICES = (5, 15, 30, 60)

# Realtime fan-out; unset keeps events in process
REALTIME_WEBHOOK_URL = os.getenv("REALTIME_WEBHOOK_URL")
REALTIME_WEBHOOK_TIMEOUT = float(os.getenv("REALTIME_WEBHOOK_TIMEOUT", "5"))
