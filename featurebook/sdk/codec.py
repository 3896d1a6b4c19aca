from __future__ import annotations

"""Decode raw feature payloads into :class:`Feature` mappings."""

import json
from typing import Any, Mapping, Protocol

from pydantic import TypeAdapter, ValidationError

from .exceptions import PayloadDecodeError
from .models import Feature, FeatureMapping, FeaturesEnvelope

_MAPPING_ADAPTER: TypeAdapter[dict[str, Feature]] = TypeAdapter(dict[str, Feature])


class FeaturePayloadCodec(Protocol):
    """Translate between payload bytes and feature mappings."""

    def decode(self, data: bytes) -> FeatureMapping:
        """Decode an API envelope (``{"features": {...}}``)."""

    def decode_mapping(self, data: bytes) -> FeatureMapping:
        """Decode a bare ``{key: feature}`` mapping."""

    def encode(self, features: Mapping[str, Feature]) -> bytes:
        """Encode ``features`` as an API envelope."""


def _loads(data: bytes | str) -> Any:
    try:
        return json.loads(data)
    except (TypeError, ValueError) as exc:
        raise PayloadDecodeError(f"payload is not valid JSON: {exc}") from exc


class JsonFeatureCodec:
    """JSON codec validated with pydantic models."""

    def decode(self, data: bytes) -> FeatureMapping:
        raw = _loads(data)
        if not isinstance(raw, dict):
            raise PayloadDecodeError("payload must be a JSON object")
        try:
            envelope = FeaturesEnvelope.model_validate(raw)
        except ValidationError as exc:
            raise PayloadDecodeError(f"invalid feature payload: {exc}") from exc
        if envelope.features is None:
            raise PayloadDecodeError("payload has no 'features' object")
        return dict(envelope.features)

    def decode_mapping(self, data: bytes) -> FeatureMapping:
        raw = _loads(data)
        try:
            return _MAPPING_ADAPTER.validate_python(raw)
        except ValidationError as exc:
            raise PayloadDecodeError(f"invalid feature mapping: {exc}") from exc

    def encode(self, features: Mapping[str, Feature]) -> bytes:
        body = {"features": self._dump(features)}
        return json.dumps(body, sort_keys=True).encode("utf-8")

    @staticmethod
    def _dump(features: Mapping[str, Feature]) -> dict[str, Any]:
        return {
            key: feature.model_dump(by_alias=True, exclude_unset=True, mode="json")
            for key, feature in features.items()
        }


__all__ = ["FeaturePayloadCodec", "JsonFeatureCodec"]
