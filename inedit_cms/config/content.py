"""Content store configuration (data directory, locales, backends)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Literal, Tuple

from dotenv import load_dotenv

load_dotenv()

BackendName = Literal["file", "supabase"]

DOMAINS: Tuple[str, ...] = ("menu", "beverages", "pages", "settings", "gallery", "translations")
SUPPORTED_LOCALES: Tuple[str, ...] = ("es", "en", "ca", "fr", "it", "de", "ru")
FALLBACK_LOCALE = "en"

DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "es")
CONTENT_DATA_DIR = Path(
    os.getenv("CONTENT_DATA_DIR", str(Path(__file__).resolve().parents[2] / "data"))
)
ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")


def backend_for(domain: str) -> BackendName:
    """Return the persistence backend configured for a domain.

    Read once per domain through ``CONTENT_BACKEND_<DOMAIN>``; the choice is
    fixed for the lifetime of the service built from it.
    """
    if domain not in DOMAINS:
        raise ValueError(f"Unknown content domain: {domain}")
    value = os.getenv(f"CONTENT_BACKEND_{domain.upper()}", "file").strip().lower()
    if value not in ("file", "supabase"):
        raise ValueError(f"Invalid backend {value!r} for domain {domain}")
    return value  # type: ignore[return-value]


def configured_backends() -> Dict[str, BackendName]:
    return {domain: backend_for(domain) for domain in DOMAINS}


__all__ = [
    "ADMIN_API_TOKEN",
    "CONTENT_DATA_DIR",
    "DEFAULT_LOCALE",
    "DOMAINS",
    "FALLBACK_LOCALE",
    "SUPPORTED_LOCALES",
    "backend_for",
    "configured_backends",
]
