"""
Store client construction.

This module contains *only* settings loading and client setup. Nothing is read
at import time: the application builds one store at startup and passes it to
every repository and service.

Environment variables:
- STORE_CREDENTIALS_BASE64: base64 of a JSON object {"url": ..., "key": ...}
  (required for the Supabase backend; use a server-side key only)
- STORE_BACKEND: "supabase" (default) or "memory" for local development
- STORE_TABLE: table holding the documents (default "documents")
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from repositories.document_store import DocumentStore, SupabaseDocumentStore
from repositories.memory_store import InMemoryDocumentStore

logger = logging.getLogger(__name__)

CREDENTIALS_ENV: str = "STORE_CREDENTIALS_BASE64"
BACKEND_ENV: str = "STORE_BACKEND"
TABLE_ENV: str = "STORE_TABLE"

SUPABASE_BACKEND: str = "supabase"
MEMORY_BACKEND: str = "memory"

# Look for .env in the project root
_ENV_PATH = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class StoreSettings:
    """Resolved store configuration."""

    backend: str = SUPABASE_BACKEND
    url: Optional[str] = None
    key: Optional[str] = None
    table: str = "documents"


def decode_credentials(encoded: str) -> tuple[str, str]:
    """
    Decode the base64 credential payload into (url, key).

    Raises RuntimeError for anything that is not base64-encoded JSON carrying
    both values.
    """

    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeError(
            f"{CREDENTIALS_ENV} is not valid base64-encoded JSON: {exc}"
        ) from exc

    if not isinstance(payload, dict):
        raise RuntimeError(f"{CREDENTIALS_ENV} must encode a JSON object")

    url = payload.get("url")
    key = payload.get("key")
    if not url or not key:
        raise RuntimeError(
            f"{CREDENTIALS_ENV} must contain both 'url' and 'key'. "
            "Encode your Supabase project URL and API key."
        )
    return str(url), str(key)


def load_settings(env_file: Optional[Path] = _ENV_PATH) -> StoreSettings:
    """
    Read store settings from the environment (and .env, if present).

    Raises RuntimeError when the Supabase backend is selected without
    credentials; the process must not serve traffic in that case.
    """

    if env_file is not None:
        load_dotenv(dotenv_path=env_file)

    backend = (os.getenv(BACKEND_ENV) or SUPABASE_BACKEND).strip().lower()
    table = os.getenv(TABLE_ENV) or "documents"

    if backend == MEMORY_BACKEND:
        return StoreSettings(backend=backend, table=table)

    if backend != SUPABASE_BACKEND:
        raise RuntimeError(
            f"Unsupported {BACKEND_ENV}: {backend!r}. "
            f"Use '{SUPABASE_BACKEND}' or '{MEMORY_BACKEND}'."
        )

    encoded = os.getenv(CREDENTIALS_ENV)
    if not encoded:
        raise RuntimeError(
            f"Missing environment variable: {CREDENTIALS_ENV}. "
            "Set it to the base64-encoded store credentials."
        )

    url, key = decode_credentials(encoded)
    return StoreSettings(backend=backend, url=url, key=key, table=table)


def create_store(settings: StoreSettings) -> DocumentStore:
    """Build the document store selected by `settings`."""

    if settings.backend == MEMORY_BACKEND:
        logger.warning("Using in-memory document store; data is not persisted")
        return InMemoryDocumentStore()

    client: Client = create_client(settings.url, settings.key)
    logger.info("Connected document store | backend=supabase table=%s", settings.table)
    return SupabaseDocumentStore(client, table=settings.table)


__all__ = [
    "StoreSettings",
    "decode_credentials",
    "load_settings",
    "create_store",
]
