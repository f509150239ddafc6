"""
Request body parsing that doesn't trust the declared Content-Type.

React Native's FormData sometimes omits the multipart header or sends it without a
usable boundary, so the boundary is sniffed from the body's first line when needed.
The body is buffered and parsed once; callers branch on the result instead of trying
one parser and catching its failure.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from urllib.parse import parse_qsl

from fastapi import Request
from starlette.datastructures import Headers, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from app.config import MAX_FILE_SIZE_ANY
from app.core.errors import InvalidField

logger = logging.getLogger(__name__)

_BOUNDARY_PARAM = re.compile(r'boundary="?([^";]+)"?', re.IGNORECASE)
_SNIFFED_BOUNDARY = re.compile(rb"^--([!-~]{1,70})\r?\n")


class RequestShape(str, Enum):
    BINARY_UPLOAD = "binary_upload"
    URL_GENERATION = "url_generation"
    MALFORMED = "malformed"


@dataclass
class ParsedBody:
    """Fields of a JSON, url-encoded or multipart body. files holds multipart file parts."""

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, UploadFile] = field(default_factory=dict)
    multi: dict[str, list[Any]] = field(default_factory=dict)
    is_form: bool = False

    def file(self, *names: str) -> Any:
        """First non-empty file value under any of names (a file part, or an inline JSON/text value)."""
        for name in names:
            value = self.files.get(name)
            if value is not None and not value.filename and not value.size:
                # browsers send an empty, unnamed part when no file was picked
                value = None
            if value is None:
                value = self.fields.get(name)
            if value is not None and value != "":
                return value
        return None

    def data(self, exclude: tuple[str, ...] = (), keep_blank: bool = False) -> dict[str, Any]:
        """Scalar fields for schema validation. Blank form values count as absent unless keep_blank."""
        out = {}
        for key, value in self.fields.items():
            if key in exclude:
                continue
            if not keep_blank and self.is_form and isinstance(value, str) and not value.strip():
                continue
            out[key] = value
        return out

    def list_field(self, name: str) -> Optional[list]:
        """A list-valued field: JSON array, repeated form fields, or a JSON-encoded form value."""
        if not self.is_form:
            value = self.fields.get(name)
            if value is None or isinstance(value, list):
                return value
            raise InvalidField(f"{name} must be a list", details={name: value})
        values = [
            v for v in self.multi.get(name, []) + self.multi.get(f"{name}[]", [])
            if isinstance(v, str) and v.strip()
        ]
        if not values:
            return None
        if len(values) == 1 and values[0].lstrip().startswith("["):
            try:
                decoded = json.loads(values[0])
            except ValueError as e:
                raise InvalidField(f"{name} must be a JSON array", details=str(e)) from e
            if not isinstance(decoded, list):
                raise InvalidField(f"{name} must be a JSON array")
            return decoded
        return values

    async def close(self) -> None:
        """Close the spooled temp files behind multipart file parts."""
        for values in self.multi.values():
            for value in values:
                if isinstance(value, UploadFile):
                    await value.close()


@dataclass
class ClassifiedRequest:
    shape: RequestShape
    body: ParsedBody
    file: Any = None
    reason: Optional[str] = None


def _boundaries(content_type: str, body: bytes) -> list[str]:
    candidates: list[str] = []
    if "multipart/" in content_type.lower():
        match = _BOUNDARY_PARAM.search(content_type)
        if match:
            candidates.append(match.group(1).strip())
    sniffed = _SNIFFED_BOUNDARY.match(body.lstrip(b"\r\n"))
    if sniffed:
        boundary = sniffed.group(1).decode("latin-1")
        if boundary not in candidates:
            candidates.append(boundary)
    return candidates


async def _parse_multipart(body: bytes, boundary: str) -> Optional[ParsedBody]:
    async def stream():
        yield body
        yield b""

    headers = Headers({"content-type": f'multipart/form-data; boundary="{boundary}"'})
    parser = MultiPartParser(headers, stream(), max_part_size=MAX_FILE_SIZE_ANY)
    try:
        form = await parser.parse()
    except MultiPartException as e:
        logger.debug("Multipart parse with boundary %r failed: %s", boundary, e.message)
        return None
    except ValueError as e:
        # python-multipart's own parse errors (e.g. boundary mismatch)
        logger.debug("Multipart parse with boundary %r failed: %s", boundary, e)
        return None
    if not form:
        return None
    parsed = ParsedBody(is_form=True)
    for key, value in form.multi_items():
        parsed.multi.setdefault(key, []).append(value)
        if isinstance(value, UploadFile):
            parsed.files[key] = value
        else:
            parsed.fields[key] = value
    return parsed


async def parse_body(content_type: str, body: bytes) -> Optional[ParsedBody]:
    """Parse body as multipart, url-encoded or JSON object. None when it is none of these."""
    content_type = content_type or ""
    for boundary in _boundaries(content_type, body):
        parsed = await _parse_multipart(body, boundary)
        if parsed is not None:
            return parsed
    if "application/x-www-form-urlencoded" in content_type.lower():
        try:
            pairs = parse_qsl(body.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError:
            return None
        parsed = ParsedBody(is_form=True)
        for key, value in pairs:
            parsed.multi.setdefault(key, []).append(value)
            parsed.fields[key] = value
        return parsed
    if not body.strip():
        return None
    try:
        decoded = json.loads(body)
    except ValueError:
        return None
    if not isinstance(decoded, dict):
        return None
    return ParsedBody(fields=decoded)


async def classify_upload_request(content_type: str, body: bytes) -> ClassifiedRequest:
    """Decide between a binary upload (a "file" field is present) and signed-URL generation."""
    parsed = await parse_body(content_type, body)
    if parsed is None:
        return ClassifiedRequest(
            shape=RequestShape.MALFORMED,
            body=ParsedBody(),
            reason="Body is neither multipart form data nor a JSON object",
        )
    file = parsed.file("file")
    if file is not None:
        return ClassifiedRequest(shape=RequestShape.BINARY_UPLOAD, body=parsed, file=file)
    return ClassifiedRequest(shape=RequestShape.URL_GENERATION, body=parsed)


async def read_entity_body(request: Request) -> ParsedBody:
    """Body of an entity create/update request (JSON or multipart). Empty body -> no fields."""
    body = await request.body()
    parsed = await parse_body(request.headers.get("content-type", ""), body)
    if parsed is not None:
        return parsed
    if not body.strip():
        return ParsedBody()
    raise InvalidField(
        "Invalid request body",
        details="Expected a JSON object or multipart/form-data",
    )
