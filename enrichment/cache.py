"""Process-local response cache for finished enrichment documents.

Documents are keyed on the normalised seed plus flags and expire after the
configured TTL. Nothing else is shared between enrichment runs.
"""

import hashlib
import json
import logging

from cachetools import TTLCache  # type: ignore[import-untyped]

from config.settings import get_settings
from core.barcode import canonicalize_barcode
from enrichment.models import Flags, Seed

logger = logging.getLogger(__name__)

_response_cache: TTLCache | None = None


def make_cache_key(seed: Seed, flags: Flags) -> str:
    """Generate a deterministic cache key from the seed and flags.

    Returns:
        MD5 hash of the serialized seed and flags
    """
    normalized = seed.model_copy(update={"barcode": canonicalize_barcode(seed.barcode)})
    key_data = {
        "seed": normalized.model_dump(exclude_none=True),
        "flags": flags.model_dump(),
    }
    key_string = json.dumps(key_data, sort_keys=True, default=str)
    return hashlib.md5(key_string.encode()).hexdigest()


def get_response_cache() -> TTLCache:
    """Get the response cache, creating it from settings on first use."""
    global _response_cache
    if _response_cache is None:
        settings = get_settings()
        _response_cache = TTLCache(
            maxsize=settings.response_cache_maxsize, ttl=settings.response_cache_ttl
        )
    return _response_cache


def get_cached(key: str) -> dict | None:
    document = get_response_cache().get(key)
    if document is not None:
        logger.debug(f"Response cache hit: {key[:8]}")
    return document


def store(key: str, document: dict) -> None:
    get_response_cache()[key] = document


def clear_response_cache() -> None:
    """Drop every cached document."""
    global _response_cache
    if _response_cache is not None:
        _response_cache.clear()
    _response_cache = None
