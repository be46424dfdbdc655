"""Stable hashing of clustering outputs."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Mapping

from ..clustering import Module


def _normalise_for_hash(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value`` with stable ordering."""

    if isinstance(value, Mapping):
        return {str(key): _normalise_for_hash(item) for key, item in sorted(value.items(), key=lambda kv: str(kv[0]))}

    if isinstance(value, (list, tuple)):
        return [_normalise_for_hash(item) for item in value]

    if isinstance(value, (set, frozenset)):
        return sorted(_normalise_for_hash(item) for item in value)

    if hasattr(value, "to_record"):
        return _normalise_for_hash(value.to_record())

    if hasattr(value, "item") and callable(getattr(value, "item")):
        value = value.item()

    if isinstance(value, float):
        return round(value, 12)

    if isinstance(value, (str, int, bool)) or value is None:
        return value

    return repr(value)


def hash_payload(payload: Any) -> str:
    """Return a SHA-256 hex digest of ``payload``.

    Mappings are hashed with sorted keys, sets as sorted lists and objects
    exposing ``to_record()`` through that record. Floats are rounded to 12
    decimal places so summation-order noise does not change the digest.
    """

    normalised = _normalise_for_hash(payload)
    encoded = json.dumps(normalised, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def module_fingerprint(modules: Iterable[Module]) -> str:
    """Digest of module membership and averages, in discovery order."""

    return hash_payload(
        [
            {"classes": list(module.classes), "average_coupling": module.average_coupling}
            for module in modules
        ]
    )


__all__ = ["hash_payload", "module_fingerprint"]
