import logging
from functools import lru_cache

from fastapi import HTTPException
from supabase import Client, create_client

from . import config

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    # Service role client: row level security is enforced by the API's own role checks
    url, key = config.require_supabase_env("url", "service_role_key")
    logger.info("Connecting to Supabase at %s", url)
    return create_client(url, key)


def execute(query, what: str = "query"):
    """Run a Supabase query builder, turning client errors into a 500."""
    try:
        return query.execute()
    except Exception as e:
        logger.exception("Supabase %s failed", what)
        raise HTTPException(status_code=500, detail=str(e))


def fetch_rows(query, what: str = "query") -> list:
    response = execute(query, what)
    return response.data or []


def fetch_one(query, what: str = "query"):
    rows = fetch_rows(query, what)
    return rows[0] if rows else None
