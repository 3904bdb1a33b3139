"""Cache entry codec: CacheEnvelope <-> JSON string.

Wire format (stable per schema version):
    {"storedAt": <ms>, "ttl": <ms>, "value": <json>, "version": <int>}

Encoding failures are programming errors (CacheCodecError). Decoding never
raises; corrupt or incompatible records come back as Err(DecodeError) so
callers can treat them as a miss.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from school_cache.core.constants import LEGACY_SCHEMA_VERSION
from school_cache.domain.entities import CacheEnvelope
from school_cache.domain.exceptions import CacheCodecError, DecodeError
from school_cache.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

_FIELD_VALUE = "value"
_FIELD_STORED_AT = "storedAt"
_FIELD_TTL = "ttl"
_FIELD_VERSION = "version"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class EnvelopeCodec:
    """Serialize and parse cache envelopes as compact, key-sorted JSON."""

    def encode(self, envelope: CacheEnvelope[Any]) -> str:
        """Return the JSON text for envelope.

        Raises:
            CacheCodecError: If the value is not JSON-serializable.
        """
        payload = {
            _FIELD_VALUE: envelope.value,
            _FIELD_STORED_AT: envelope.stored_at_millis,
            _FIELD_TTL: envelope.ttl_millis,
            _FIELD_VERSION: envelope.schema_version,
        }
        try:
            return json.dumps(
                payload, sort_keys=True, separators=(",", ":"), allow_nan=False
            )
        except (TypeError, ValueError) as e:
            raise CacheCodecError(str(e)) from e

    def decode(self, raw: str) -> Result[CacheEnvelope[Any], DecodeError]:
        """Parse raw into an envelope.

        A record without a version field is decoded with the legacy schema
        version so the freshness policy reports it as a version mismatch.
        """
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            return Err(DecodeError(f"invalid JSON: {e}"))
        if not isinstance(payload, dict):
            return Err(DecodeError(f"expected object, got {type(payload).__name__}"))
        if _FIELD_VALUE not in payload:
            return Err(DecodeError("missing field 'value'"))

        stored_at = payload.get(_FIELD_STORED_AT)
        ttl = payload.get(_FIELD_TTL)
        if not _is_int(stored_at):
            return Err(DecodeError("field 'storedAt' must be an integer"))
        if not _is_int(ttl):
            return Err(DecodeError("field 'ttl' must be an integer"))

        version = payload.get(_FIELD_VERSION, LEGACY_SCHEMA_VERSION)
        if not _is_int(version):
            return Err(DecodeError("field 'version' must be an integer"))

        return Ok(
            CacheEnvelope(
                value=payload[_FIELD_VALUE],
                stored_at_millis=stored_at,
                ttl_millis=ttl,
                schema_version=version,
            )
        )
