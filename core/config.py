import json
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from utils.timezone_helpers import validate_timezone

# Load environment variables from .env file, if it exists
load_dotenv()


# One Office Entry From OFFICE_LOCATIONS
class OfficeConfig(BaseModel):
    id: str
    latitude: float
    longitude: float
    radius_km: float = Field(gt=0)


DEFAULT_OFFICES: List[OfficeConfig] = [
    OfficeConfig(id="Head_Office", latitude=9.429241474535132, longitude=-1.0533786340817441, radius_km=0.5),
    OfficeConfig(id="Nyankpala", latitude=9.404691157748209, longitude=-0.9838639320946208, radius_km=0.5),
]


class Settings(BaseModel):
    verify_token: str
    whatsapp_token: str
    phone_number_id: str
    graph_api_version: str = "v20.0"
    whatsapp_timeout_seconds: float = 10.0
    offices: List[OfficeConfig] = Field(default_factory=lambda: list(DEFAULT_OFFICES))
    # None disables pending request expiry
    pending_request_ttl_seconds: Optional[float] = None
    pending_sweep_interval_seconds: float = Field(default=60.0, gt=0)
    attendance_timezone: str = "UTC"
    ledger_backend: str = "sql"
    service_name: str = "whatsapp-attendance-bot"


REQUIRED_VARS = ["VERIFY_TOKEN", "WHATSAPP_TOKEN", "PHONE_NUMBER_ID"]
LEDGER_BACKENDS = ("sql", "memory")


def _optional_positive_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")
    return value if value > 0 else None


def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be greater than 0, got {value}")
    return value


def _parse_offices(raw: Optional[str]) -> List[OfficeConfig]:
    if not raw or not raw.strip():
        return list(DEFAULT_OFFICES)
    try:
        items = json.loads(raw)
        offices = [OfficeConfig.model_validate(item) for item in items]
    except (json.JSONDecodeError, TypeError, PydanticValidationError) as e:
        raise ValueError(f"Invalid OFFICE_LOCATIONS: {e}")
    if not offices:
        raise ValueError("OFFICE_LOCATIONS must list at least one office")
    ids = [office.id for office in offices]
    if len(ids) != len(set(ids)):
        raise ValueError(f"OFFICE_LOCATIONS has duplicate office ids: {ids}")
    return offices


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Raises ValueError on missing credentials or malformed values so the
    application refuses to start instead of failing on every webhook.
    """
    missing_vars = [var for var in REQUIRED_VARS if not os.getenv(var)]
    if missing_vars:
        raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

    ledger_backend = os.getenv("LEDGER_BACKEND", "sql").strip().lower()
    if ledger_backend not in LEDGER_BACKENDS:
        raise ValueError(f"LEDGER_BACKEND must be one of {LEDGER_BACKENDS}, got '{ledger_backend}'")

    return Settings(
        verify_token=os.getenv("VERIFY_TOKEN"),
        whatsapp_token=os.getenv("WHATSAPP_TOKEN"),
        phone_number_id=os.getenv("PHONE_NUMBER_ID"),
        graph_api_version=os.getenv("GRAPH_API_VERSION", "v20.0"),
        whatsapp_timeout_seconds=float(os.getenv("WHATSAPP_TIMEOUT_SECONDS", "10")),
        offices=_parse_offices(os.getenv("OFFICE_LOCATIONS")),
        pending_request_ttl_seconds=_optional_positive_float("PENDING_REQUEST_TTL_SECONDS"),
        pending_sweep_interval_seconds=_positive_float("PENDING_SWEEP_INTERVAL_SECONDS", "60"),
        attendance_timezone=validate_timezone(os.getenv("ATTENDANCE_TIMEZONE", "UTC")),
        ledger_backend=ledger_backend,
        service_name=os.getenv("SERVICE_NAME", "whatsapp-attendance-bot"),
    )
