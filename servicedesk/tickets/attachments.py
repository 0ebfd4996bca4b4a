"""Validation and on-disk storage of ticket attachments."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePath
from typing import Sequence

from servicedesk.core.errors import ValidationError

from .models import Attachment

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: dict[str, frozenset[str]] = {
    ".jpg": frozenset({"image/jpeg", "image/jpg", "image/pjpeg"}),
    ".jpeg": frozenset({"image/jpeg", "image/jpg", "image/pjpeg"}),
    ".png": frozenset({"image/png"}),
    ".pdf": frozenset({"application/pdf"}),
}
ALLOWED_TYPES_MESSAGE = "Only images (JPG, PNG) or PDF are allowed"


@dataclass(frozen=True, slots=True)
class IncomingFile:
    """Uploaded file already read into memory."""

    filename: str
    content_type: str | None
    data: bytes


class AttachmentStorage:
    """Keep uploaded files under ``directory`` with random names."""

    def __init__(
        self,
        directory: Path | str,
        *,
        max_bytes: int = 5 * 1024 * 1024,
        max_files: int = 5,
        public_prefix: str = "/uploads",
    ) -> None:
        self.directory = Path(directory)
        self._max_bytes = max_bytes
        self._max_files = max_files
        self._public_prefix = public_prefix.rstrip("/")

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def validate(self, files: Sequence[IncomingFile]) -> None:
        if len(files) > self._max_files:
            raise ValidationError(f"At most {self._max_files} files per upload")
        for incoming in files:
            extension = PurePath(incoming.filename or "").suffix.lower()
            allowed_types = ALLOWED_EXTENSIONS.get(extension)
            content_type = (incoming.content_type or "").split(";")[0].strip().lower()
            if allowed_types is None or content_type not in allowed_types:
                raise ValidationError(ALLOWED_TYPES_MESSAGE)
            if len(incoming.data) > self._max_bytes:
                limit_mb = self._max_bytes / (1024 * 1024)
                raise ValidationError(f"File {incoming.filename} exceeds the {limit_mb:g} MB limit")

    def store_all(self, files: Sequence[IncomingFile], *, uploaded_by: str, now: datetime) -> list[Attachment]:
        """Validate every file first, then write them all."""

        self.validate(files)
        self.directory.mkdir(parents=True, exist_ok=True)
        stored: list[Attachment] = []
        for incoming in files:
            extension = PurePath(incoming.filename).suffix.lower()
            stored_name = f"{uuid.uuid4().hex}{extension}"
            (self.directory / stored_name).write_bytes(incoming.data)
            stored.append(
                Attachment(
                    original_name=PurePath(incoming.filename).name,
                    stored_name=stored_name,
                    path=f"{self._public_prefix}/{stored_name}",
                    uploaded_at=now,
                    uploaded_by=uploaded_by,
                )
            )
        return stored

    def remove(self, stored_name: str) -> bool:
        """Delete a stored file; a file that is already gone is not an error."""

        target = self.directory / PurePath(stored_name).name
        try:
            target.unlink()
        except FileNotFoundError:
            logger.info("Attachment %s already absent from %s", stored_name, self.directory)
            return False
        return True
