"""Attach drawings and encode them as base64 payloads."""
from __future__ import annotations

import base64
import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ReadError
from .models import AttachedFile, EncodedFile

LOGGER = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
MAX_ENCODE_WORKERS = 4


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or DEFAULT_MIME_TYPE


def attach_file(path: str | Path, mime_type: Optional[str] = None) -> AttachedFile:
    """Declare ``path`` as a project attachment.

    The file must exist and be readable now; the content itself is only read
    when the project is submitted.
    """

    candidate = Path(path).expanduser()
    if not candidate.is_file():
        raise ReadError(f"File not found: {candidate}", path=candidate)
    if not os.access(candidate, os.R_OK):
        raise ReadError(f"File is not readable: {candidate}", path=candidate)
    return AttachedFile(path=candidate.resolve(), mime_type=mime_type or guess_mime_type(candidate))


def encode_file(attached: AttachedFile) -> EncodedFile:
    try:
        content = attached.path.read_bytes()
    except OSError as exc:
        raise ReadError(f"File read failed for {attached.name}: {exc}", path=attached.path) from exc
    data = base64.b64encode(content).decode("ascii")
    LOGGER.debug("Encoded %s (%s, %d bytes)", attached.name, attached.mime_type, len(content))
    return EncodedFile(mime_type=attached.mime_type, data=data, name=attached.name)


def encode_files(files: Sequence[AttachedFile]) -> List[EncodedFile]:
    """Encode ``files`` concurrently, preserving their order."""

    if not files:
        return []
    workers = max(1, min(MAX_ENCODE_WORKERS, len(files)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="autobom-encode") as pool:
        return list(pool.map(encode_file, files))


__all__ = ["attach_file", "encode_file", "encode_files", "guess_mime_type"]
