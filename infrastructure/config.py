"""Service configuration, read once from the environment"""
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Identity: tokens are issued by the identity service with this shared secret
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev_secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Search
SEARCH_PAGE_SIZE = int(os.getenv("SEARCH_PAGE_SIZE", "5"))
SEARCH_CACHE_TTL_SECONDS = float(os.getenv("SEARCH_CACHE_TTL_SECONDS", "30"))
SEARCH_CACHE_CAPACITY = int(os.getenv("SEARCH_CACHE_CAPACITY", "100"))

# Collaborators
NOTIFICATION_SERVICE_URL = os.getenv("NOTIFICATION_SERVICE_URL")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5"))
CATALOG_SEED_PATH = os.getenv("CATALOG_SEED_PATH")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_bool("LOG_JSON", True)
