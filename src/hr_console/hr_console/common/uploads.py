from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _size_of(file: FileStorage) -> int:
    stream = file.stream
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def check_upload(file: Optional[FileStorage], *, allowed: Iterable[str], max_bytes: int, label: str = "File") -> FileStorage:
    if file is None or not file.filename:
        raise ValidationError(f"{label} is required.")
    if file.mimetype not in set(allowed):
        raise ValidationError(f"{label} type '{file.mimetype}' is not allowed.")
    if _size_of(file) > max_bytes:
        raise ValidationError(f"{label} must be at most {max_bytes // (1024 * 1024)} MB.")
    return file


def save_upload(
    file: Optional[FileStorage],
    *,
    root: str | Path,
    folder: str,
    allowed: Iterable[str],
    max_bytes: int,
    label: str = "File",
) -> str:
    """Validate and store an upload; returns the path relative to root."""

    file = check_upload(file, allowed=allowed, max_bytes=max_bytes, label=label)

    name = secure_filename(file.filename) or "upload"
    relative = Path(folder) / f"{uuid.uuid4().hex[:12]}_{name}"
    target = Path(root) / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    file.save(str(target))

    logger.info("Stored upload %s (%s)", relative.as_posix(), file.mimetype)
    return relative.as_posix()
