"""Freshness and schema-version policy for fallback cache envelopes."""

from __future__ import annotations

import logging
from typing import Any

from school_cache.domain.entities import CacheEnvelope
from school_cache.domain.enums import Freshness

logger = logging.getLogger(__name__)


class FreshnessPolicy:
    """Classify an envelope as FRESH, STALE or VERSION_MISMATCH.

    The schema version is checked first, so a young envelope written under
    another schema is still a mismatch. Age uses the envelope's own TTL;
    an envelope exactly ttl_millis old is stale, and so is one whose
    stored_at lies in the future (the clock moved backwards).
    """

    def __init__(self, current_schema_version: int) -> None:
        self.current_schema_version = current_schema_version

    def classify(self, envelope: CacheEnvelope[Any], now_millis: int) -> Freshness:
        if envelope.schema_version != self.current_schema_version:
            logger.debug(
                "Envelope version mismatch: stored=%s current=%s",
                envelope.schema_version,
                self.current_schema_version,
            )
            return Freshness.VERSION_MISMATCH
        age = envelope.age_millis(now_millis)
        if age < 0:
            logger.debug("Envelope stored in the future (age=%sms); treating as stale", age)
            return Freshness.STALE
        if age < envelope.ttl_millis:
            return Freshness.FRESH
        return Freshness.STALE

    def is_fresh(self, envelope: CacheEnvelope[Any], now_millis: int) -> bool:
        return self.classify(envelope, now_millis) == Freshness.FRESH
