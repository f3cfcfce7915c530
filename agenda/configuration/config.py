import os
from dotenv import load_dotenv
from agenda.models.mod_appointment import OccupancyPolicy

# Load environment variables from .env file
load_dotenv()

def _occupancy_policy(value: str) -> OccupancyPolicy:
    try:
        return OccupancyPolicy(value.strip().upper())
    except ValueError:
        allowed = ", ".join(policy.value for policy in OccupancyPolicy)
        raise ValueError(f"OCCUPANCY_POLICY must be one of {allowed}, got {value!r}")

class Config:
    # Upstream REST API
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080/api")
    API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "30"))
    API_RETRY_ATTEMPTS = int(os.getenv("API_RETRY_ATTEMPTS", "3"))

    # Slot cache
    SLOT_CACHE_TTL_SECONDS = float(os.getenv("SLOT_CACHE_TTL_SECONDS", "30"))
    SLOT_CACHE_MAX_SIZE = int(os.getenv("SLOT_CACHE_MAX_SIZE", "1000"))

    # Booking (OCCUPANCY_POLICY is validated at import)
    BOOKING_WINDOW_DAYS = int(os.getenv("BOOKING_WINDOW_DAYS", "30"))
    OCCUPANCY_POLICY = _occupancy_policy(os.getenv("OCCUPANCY_POLICY", "NON_CANCELLED"))

    # Logging and Application Insights
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    APPLICATIONINSIGHTS_CONNECTION_STRING = os.getenv("APPLICATIONINSIGHTS_CONNECTION_STRING")
    SERVICE_NAME = os.getenv("SERVICE_NAME", "agenda-availability")
