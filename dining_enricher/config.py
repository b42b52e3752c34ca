# dining_enricher/config.py
from dataclasses import dataclass, replace
from typing import Optional
from dotenv import load_dotenv
import os

from dining_enricher.errors import ConfigError

load_dotenv()

# API Keys
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# Object storage
GCS_ENABLED = os.getenv("GCS_ENABLED", "true").lower() != "false"
GCS_BUCKET_NAME = os.getenv("GCS_BUCKET_NAME", "sda-assets-prod")
GCS_KEY_FILE = os.getenv("GCS_KEY_FILE")

# Runtime parameters
SEARCH_RADIUS_MILES = float(os.getenv("SEARCH_RADIUS_MILES", "20"))
MAX_VENUES_PER_RESORT = int(os.getenv("MAX_VENUES_PER_RESORT", "15"))
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "5"))  # Not consulted; resorts run sequentially
DELAY_BETWEEN_REQUESTS_MS = int(os.getenv("DELAY_BETWEEN_REQUESTS_MS", "2000"))
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_MAX_REQUESTS_PER_MINUTE = int(os.getenv("OPENAI_MAX_REQUESTS_PER_MINUTE", "60"))
PROVIDER_MAX_ATTEMPTS = int(os.getenv("PROVIDER_MAX_ATTEMPTS", "3"))
FUZZY_THRESHOLD = float(os.getenv("FUZZY_THRESHOLD", "90"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# A link is only written when the venue is within this multiple of the search radius
RADIUS_SAFETY_FACTOR = 1.5

REQUIRED_ENV_VARS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "OPENAI_API_KEY")


@dataclass(frozen=True)
class EnrichmentConfig:
    """Settings for one enrichment run. CLI flags override the environment defaults."""
    search_radius_miles: float = SEARCH_RADIUS_MILES
    max_venues_per_resort: int = MAX_VENUES_PER_RESORT
    delay_between_requests_ms: int = DELAY_BETWEEN_REQUESTS_MS
    openai_model: str = OPENAI_MODEL
    provider_max_attempts: int = PROVIDER_MAX_ATTEMPTS
    fuzzy_threshold: Optional[float] = FUZZY_THRESHOLD
    dry_run: bool = False
    skip_existing: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "EnrichmentConfig":
        """Build a config from the environment, ignoring overrides that are None."""
        base = cls()
        return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def validate_config() -> None:
    """
    Ensure all credentials needed for a run are present.

    Raises:
        ConfigError: Listing every missing environment variable.
    """
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
