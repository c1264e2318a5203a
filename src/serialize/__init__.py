# serialize/__init__.py
# zipbundle – Serialize subsystem: deterministic JSON payload for the generator

from .serialize import (
    serialize_files,
    deserialize_files,
    payload_stats,
    SerializeError,
)

__all__ = [
    "serialize_files",
    "deserialize_files",
    "payload_stats",
    "SerializeError",
]
