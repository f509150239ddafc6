"""
Normalize the file payloads clients submit into bytes + filename + MIME type.

Clients are heterogeneous (web forms, Node scripts, two React Native file pickers),
so the same "file" field can arrive as a Starlette UploadFile, a file-like object,
a chunk iterator, raw bytes, a list of byte values, a {"_data": ...} mapping or a
base64 data: URL. classify_payload() tags the value once; normalize() matches on
the tag and extracts the bytes.
"""

import base64
import binascii
import inspect
import logging
import mimetypes
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Optional, Union

from app.core.errors import UnsupportedPayload

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "file"
DEFAULT_MIME = "application/octet-stream"

_NAME_KEYS = ("name", "fileName", "filename")
_TYPE_KEYS = ("type", "mimeType", "content_type", "contentType")


@dataclass(frozen=True)
class NormalizedFile:
    content: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ReadableFile:
    """Object exposing read() for its whole contents (UploadFile, BytesIO, open file)."""

    handle: Any
    name: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ChunkedStream:
    """Sync or async iterator yielding byte chunks."""

    chunks: Any


@dataclass(frozen=True)
class InMemoryBytes:
    content: bytes


@dataclass(frozen=True)
class NestedDataField:
    """Mapping carrying the bytes under _data/data (some mobile FormData encodings)."""

    data: Any
    name: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True)
class Base64Payload:
    encoded: str
    content_type: Optional[str] = None


PayloadVariant = Union[ReadableFile, ChunkedStream, InMemoryBytes, NestedDataField, Base64Payload]


def describe_payload(raw: Any) -> dict:
    """Structural introspection of an unreadable payload, returned to the client for debugging."""
    if isinstance(raw, Mapping):
        keys = [str(k) for k in raw.keys()]
    elif hasattr(raw, "__dict__"):
        keys = [k for k in vars(raw) if not k.startswith("_")]
    else:
        keys = []
    return {
        "type": type(raw).__name__,
        "module": type(raw).__module__,
        "has_read": callable(getattr(raw, "read", None)),
        "has_async_iter": hasattr(raw, "__aiter__"),
        "has_iter": isinstance(raw, Iterator),
        "keys": keys[:50],
    }


def _unsupported(raw: Any, reason: str) -> UnsupportedPayload:
    info = describe_payload(raw)
    message = (
        f"Cannot read file ({reason}). Type: {info['type']}, "
        f"Has read: {info['has_read']}, "
        f"Has stream: {info['has_async_iter'] or info['has_iter']}, "
        f"Keys: {', '.join(info['keys']) or 'none'}"
    )
    return UnsupportedPayload(message, details=info)


def _as_bytes(value: Any) -> Optional[bytes]:
    """Return value as bytes if it is a byte buffer or a sequence of byte values."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)) and all(
        isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in value
    ):
        return bytes(value)
    return None


def _first_str(source: Any, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        if isinstance(source, Mapping):
            value = source.get(key)
        else:
            value = getattr(source, key, None)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _is_data_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("data:") and "," in value


def classify_payload(raw: Any) -> PayloadVariant:
    """Tag raw with the first extraction strategy that applies, or raise UnsupportedPayload."""
    if raw is None:
        raise _unsupported(raw, "no file value")
    if isinstance(raw, str):
        if _is_data_url(raw):
            header = raw.split(",", 1)[0]
            mime = header[len("data:"):].split(";", 1)[0] or None
            return Base64Payload(encoded=raw, content_type=mime)
        raise _unsupported(raw, "string payload is not a base64 data: URL")
    if isinstance(raw, Mapping):
        for key in ("_data", "data"):
            if raw.get(key) is not None:
                return NestedDataField(
                    data=raw[key],
                    name=_first_str(raw, _NAME_KEYS),
                    content_type=_first_str(raw, _TYPE_KEYS),
                )
        raise _unsupported(raw, "object has no _data or data property")
    if callable(getattr(raw, "read", None)):
        return ReadableFile(
            handle=raw,
            name=_first_str(raw, ("filename", "name")),
            content_type=_first_str(raw, ("content_type", "type")),
        )
    if hasattr(raw, "__aiter__") or isinstance(raw, Iterator):
        return ChunkedStream(chunks=raw)
    content = _as_bytes(raw)
    if content is not None:
        return InMemoryBytes(content=content)
    raise _unsupported(raw, "no supported representation")


async def _read_whole(handle: Any) -> bytes:
    data = handle.read()
    if inspect.isawaitable(data):
        data = await data
    if isinstance(data, str):
        return data.encode("utf-8")
    content = _as_bytes(data)
    if content is None:
        raise _unsupported(data, "read() did not return bytes")
    return content


async def _drain(chunks: Any) -> bytes:
    buffer = bytearray()

    def _append(chunk: Any) -> None:
        if isinstance(chunk, str):
            buffer.extend(chunk.encode("utf-8"))
            return
        content = _as_bytes(chunk)
        if content is None:
            raise _unsupported(chunk, "stream yielded a non-bytes chunk")
        buffer.extend(content)

    if hasattr(chunks, "__aiter__"):
        async for chunk in chunks:
            _append(chunk)
    else:
        for chunk in chunks:
            _append(chunk)
    return bytes(buffer)


def _decode_data_url(value: str) -> bytes:
    header, _, encoded = value.partition(",")
    if ";base64" not in header:
        raise _unsupported(value, "data: URL is not base64-encoded")
    encoded = "".join(encoded.split())
    encoded += "=" * (-len(encoded) % 4)
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnsupportedPayload(f"Cannot read file (invalid base64 data: URL): {e}") from e


def _nested_bytes(variant: NestedDataField) -> bytes:
    content = _as_bytes(variant.data)
    if content is not None:
        return content
    if _is_data_url(variant.data):
        return _decode_data_url(variant.data)
    raise _unsupported(variant.data, "_data/data property is not bytes or a base64 data: URL")


def _clean_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    base = PurePosixPath(name.replace("\\", "/")).name
    return base or None


def resolve_content_type(
    reported: Optional[str],
    declared: Optional[str],
    filename: str,
    default_mime: Optional[str] = None,
) -> str:
    """Self-reported, then declared, then guessed from the extension, then the contextual default."""
    for candidate in (reported, declared):
        if candidate and candidate.strip() and candidate.strip().lower() != DEFAULT_MIME:
            return candidate.strip()
    guessed, _ = mimetypes.guess_type(filename)
    if guessed:
        return guessed
    return default_mime or DEFAULT_MIME


async def normalize(
    raw: Any,
    declared_name: Optional[str] = None,
    declared_mime: Optional[str] = None,
    default_mime: Optional[str] = None,
) -> NormalizedFile:
    """Materialize raw into a NormalizedFile. Raises UnsupportedPayload when no strategy applies."""
    variant = classify_payload(raw)
    reported_name: Optional[str] = None
    reported_type: Optional[str] = None
    match variant:
        case ReadableFile(handle=handle, name=name, content_type=ctype):
            content = await _read_whole(handle)
            reported_name, reported_type = name, ctype
        case ChunkedStream(chunks=chunks):
            content = await _drain(chunks)
        case InMemoryBytes(content=data):
            content = data
        case NestedDataField(name=name, content_type=ctype):
            content = _nested_bytes(variant)
            reported_name, reported_type = name, ctype
        case Base64Payload(encoded=encoded, content_type=ctype):
            content = _decode_data_url(encoded)
            reported_type = ctype
    if not content:
        raise _unsupported(raw, "payload is empty")
    filename = _clean_name(reported_name) or _clean_name(declared_name) or DEFAULT_FILENAME
    content_type = resolve_content_type(reported_type, declared_mime, filename, default_mime)
    logger.debug(
        "Normalized %s payload: %d bytes, name=%s, type=%s",
        type(variant).__name__, len(content), filename, content_type,
    )
    return NormalizedFile(content=content, filename=filename, content_type=content_type)
