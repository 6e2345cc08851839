"""
Runtime configuration read from the environment (and a local .env file).
"""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _first_non_empty(*names):
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


# Supabase
SUPABASE_ENV_NAMES = {
    "url": ("SUPABASE_URL",),
    "service_role_key": ("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY"),
    "jwt_secret": ("SUPABASE_JWT_SECRET",),
}
SUPABASE_URL = _first_non_empty(*SUPABASE_ENV_NAMES["url"])
SUPABASE_SERVICE_ROLE_KEY = _first_non_empty(*SUPABASE_ENV_NAMES["service_role_key"])
SUPABASE_JWT_SECRET = _first_non_empty(*SUPABASE_ENV_NAMES["jwt_secret"])
JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

# Storage
DOCUMENTS_BUCKET = os.getenv("DOCUMENTS_BUCKET", "employee-documents")
RECEIPTS_BUCKET = os.getenv("RECEIPTS_BUCKET", "salary-receipts")
SIGNED_URL_TTL = int(os.getenv("SIGNED_URL_TTL", "300"))

# Roles
ADMIN_ROLES = {role.strip() for role in os.getenv("ADMIN_ROLES", "admin").split(",") if role.strip()}


def require_supabase_env(*keys):
    """
    Return the requested Supabase settings, failing loudly when any is unset.
    Keys are the ones of SUPABASE_ENV_NAMES ("url", "service_role_key", ...).
    """
    values = {
        "url": SUPABASE_URL,
        "service_role_key": SUPABASE_SERVICE_ROLE_KEY,
        "jwt_secret": SUPABASE_JWT_SECRET,
    }
    missing = [key for key in keys if not values[key]]
    if missing:
        expected = "\n".join(f"- {name}" for key in missing for name in SUPABASE_ENV_NAMES[key])
        raise RuntimeError(f"Missing Supabase environment variables.\nExpected one of:\n{expected}")
    return tuple(values[key] for key in keys)
