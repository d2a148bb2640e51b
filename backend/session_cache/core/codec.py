"""Session Codec — tagged-variant serialization of heterogeneous session data.

Invariants:
    - decode(encode(m)) == m for every mapping built from registered types
    - decode(b"") == {} (freshly inserted rows carry an empty blob)
    - Every concrete value type must be registered before it is encoded or decoded
    - Unknown tags, bad headers and truncated payloads raise CodecError, never partial data

Design Decisions:
    - Blob = MAGIC header + UTF-8 JSON of {"t": tag, "v": payload} nodes: self-describing,
      inspectable with any SQL client
    - Exact-type lookup (type(value)), not isinstance: bool is never confused with int,
      and an unregistered subclass is rejected instead of silently narrowed
    - Maps are encoded as [key, value] pairs so int, tuple and record keys survive
    - Records (dataclasses, pydantic models) are encoded field by field, recursively
"""

import base64
import dataclasses
import json
from datetime import datetime
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from session_cache.core.errors import CodecError

MAGIC = b"msc1"

Encoder = Callable[["Codec", Any], Any]
Decoder = Callable[["Codec", Any], Any]


@dataclasses.dataclass(frozen=True)
class _Kind:
    tag: str
    cls: type
    to_payload: Encoder
    from_payload: Decoder


class Codec:
    """Registry of value kinds plus encode/decode over session data maps."""

    def __init__(self) -> None:
        self._by_type: dict[type, _Kind] = {}
        self._by_tag: dict[str, _Kind] = {}

    # ─── Registration ───────────────────────────────────────────

    def register(
        self,
        cls: type,
        tag: str,
        to_payload: Encoder,
        from_payload: Decoder,
    ) -> None:
        """Register a value kind. Re-registering the same (cls, tag) pair is a no-op."""
        existing = self._by_tag.get(tag)
        if existing is not None and existing.cls is not cls:
            raise CodecError(
                f"Tag '{tag}' already registered for {existing.cls.__qualname__}",
            )
        kind = _Kind(tag, cls, to_payload, from_payload)
        self._by_type[cls] = kind
        self._by_tag[tag] = kind

    def register_record(self, cls: type, tag: str | None = None) -> None:
        """Register a dataclass or pydantic model; fields are encoded recursively."""
        if dataclasses.is_dataclass(cls):
            names = tuple(f.name for f in dataclasses.fields(cls))
        elif isinstance(cls, type) and issubclass(cls, BaseModel):
            names = tuple(cls.model_fields)
        else:
            raise CodecError(
                f"{getattr(cls, '__qualname__', cls)!r} is not a dataclass or pydantic model",
            )

        def to_payload(codec: "Codec", value: Any) -> dict:
            return {name: codec.encode_value(getattr(value, name)) for name in names}

        def from_payload(codec: "Codec", payload: Any) -> Any:
            if not isinstance(payload, dict):
                raise CodecError(f"Record payload for {cls.__qualname__} must be an object")
            return cls(**{k: codec.decode_value(v) for k, v in payload.items()})

        self.register(cls, tag or f"{cls.__module__}.{cls.__qualname__}", to_payload, from_payload)

    def is_registered(self, cls: type) -> bool:
        return cls in self._by_type

    # ─── Values ─────────────────────────────────────────────────

    def encode_value(self, value: Any) -> dict:
        kind = self._by_type.get(type(value))
        if kind is None:
            raise CodecError(
                f"Type {type(value).__qualname__} is not registered with the codec",
            )
        try:
            return {"t": kind.tag, "v": kind.to_payload(self, value)}
        except CodecError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise CodecError(f"Cannot encode '{kind.tag}' value: {e}")

    def decode_value(self, node: Any) -> Any:
        if not isinstance(node, dict) or "t" not in node or "v" not in node:
            raise CodecError("Malformed value node")
        tag = node["t"]
        if not isinstance(tag, str):
            raise CodecError("Type tag must be a string")
        kind = self._by_tag.get(tag)
        if kind is None:
            raise CodecError(f"Type tag '{tag}' is not registered with the codec")
        try:
            return kind.from_payload(self, node["v"])
        except CodecError:
            raise
        except (TypeError, ValueError, KeyError) as e:
            raise CodecError(f"Cannot decode '{tag}' value: {e}")

    # ─── Blobs ──────────────────────────────────────────────────
    # RecursionError is caught only here, at the top of the walk, where the
    # stack has room to build the CodecError

    def encode(self, data: Mapping) -> bytes:
        """Serialize a session data map to an opaque blob."""
        try:
            node = self.encode_value(dict(data))
            text = json.dumps(node, separators=(",", ":"))
        except RecursionError:
            raise CodecError("Session data is nested too deeply (or is self-referencing)")
        except (TypeError, ValueError) as e:
            raise CodecError(f"Session data cannot be serialized: {e}")
        return MAGIC + text.encode("utf-8")

    def decode(self, blob: bytes) -> dict:
        """Deserialize a blob produced by encode(). Empty blob → empty map."""
        if not blob:
            return {}
        if not blob.startswith(MAGIC):
            raise CodecError("Session blob has an unknown header")
        try:
            node = json.loads(blob[len(MAGIC):].decode("utf-8"))
            value = self.decode_value(node)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CodecError(f"Session blob is truncated or malformed: {e}")
        except RecursionError:
            raise CodecError("Session blob is nested too deeply")
        if not isinstance(value, dict):
            raise CodecError("Session blob root is not a map")
        return value


# ─── Built-in kinds ─────────────────────────────────────────────

def _identity(codec: Codec, value: Any) -> Any:
    return value


def _decode_scalar(cls: type) -> Decoder:
    def decode(codec: Codec, payload: Any) -> Any:
        if type(payload) is not cls:
            raise CodecError(f"Expected {cls.__name__} payload, got {type(payload).__name__}")
        return payload
    return decode


def _decode_float(codec: Codec, payload: Any) -> float:
    if type(payload) not in (int, float):
        raise CodecError(f"Expected float payload, got {type(payload).__name__}")
    return float(payload)


def _decode_none(codec: Codec, payload: Any) -> None:
    if payload is not None:
        raise CodecError("Expected null payload")
    return None


def _encode_bytes(codec: Codec, value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _decode_bytes(codec: Codec, payload: Any) -> bytes:
    if not isinstance(payload, str):
        raise CodecError("Expected base64 string payload")
    return base64.b64decode(payload.encode("ascii"), validate=True)


def _encode_seq(codec: Codec, value: list | tuple) -> list:
    return [codec.encode_value(item) for item in value]


def _decode_list(codec: Codec, payload: Any) -> list:
    if not isinstance(payload, list):
        raise CodecError("Expected array payload")
    return [codec.decode_value(item) for item in payload]


def _decode_tuple(codec: Codec, payload: Any) -> tuple:
    return tuple(_decode_list(codec, payload))


def _encode_map(codec: Codec, value: dict) -> list:
    return [[codec.encode_value(k), codec.encode_value(v)] for k, v in value.items()]


def _decode_map(codec: Codec, payload: Any) -> dict:
    if not isinstance(payload, list):
        raise CodecError("Expected array of pairs payload")
    out = {}
    for pair in payload:
        if not isinstance(pair, list) or len(pair) != 2:
            raise CodecError("Map entry must be a [key, value] pair")
        out[codec.decode_value(pair[0])] = codec.decode_value(pair[1])
    return out


def _encode_datetime(codec: Codec, value: datetime) -> str:
    return value.isoformat()


def _decode_datetime(codec: Codec, payload: Any) -> datetime:
    if not isinstance(payload, str):
        raise CodecError("Expected ISO-8601 string payload")
    return datetime.fromisoformat(payload)


def register_builtins(codec: Codec) -> Codec:
    """Register the kinds every session may carry without extra setup."""
    codec.register(type(None), "nil", _identity, _decode_none)
    codec.register(bool, "bool", _identity, _decode_scalar(bool))
    codec.register(int, "int", _identity, _decode_scalar(int))
    codec.register(float, "float", _identity, _decode_float)
    codec.register(str, "str", _identity, _decode_scalar(str))
    codec.register(bytes, "bytes", _encode_bytes, _decode_bytes)
    codec.register(list, "list", _encode_seq, _decode_list)
    codec.register(tuple, "tuple", _encode_seq, _decode_tuple)
    codec.register(dict, "map", _encode_map, _decode_map)
    codec.register(datetime, "datetime", _encode_datetime, _decode_datetime)
    return codec


default_codec = register_builtins(Codec())
