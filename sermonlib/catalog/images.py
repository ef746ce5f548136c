#!/usr/bin/env python3
"""
images.py
--------------------
Image collaborator: stores sermon images and converts them to and from
embeddable base64 payloads for snapshots.

The codec itself (resizing, recompression) is not part of the catalog
engine. ``FileImageStore`` takes an optional ``transform`` callable that
maps raw image bytes to bounded, compressed bytes; without one the bytes
are stored as given.

Usage:
    images = FileImageStore(IMAGES_DIR)
    ref = images.compress(raw_bytes, "sermon_42.jpg")
    payload = images.to_embeddable(ref)          # for backups
    new_ref = images.from_embeddable(payload, "sermon_42.jpg")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

# --- Local imports ---
from sermonlib.core.exceptions import ValidationError
from sermonlib.core.logging_manager import CatalogLogger, safe_logger

MIME_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
}
DEFAULT_MIME_TYPE = "image/jpeg"


def guess_mime_type(ref: str) -> str:
    """Infer an image mime type from a reference's extension."""
    return MIME_TYPES.get(Path(ref).suffix.lower(), DEFAULT_MIME_TYPE)


@dataclass(frozen=True)
class ImagePayload:
    """An image embedded in a snapshot."""
    base64:        str
    mime_type:     str
    original_path: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "base64": self.base64,
            "mimeType": self.mime_type,
            "originalPath": self.original_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], original_path: str = "") -> "ImagePayload":
        """
        Raises:
            ValidationError: If the base64 data is missing
        """
        if not isinstance(data, dict) or not data.get("base64"):
            raise ValidationError("Image payload missing base64 data")
        return cls(
            base64=str(data["base64"]),
            mime_type=str(data.get("mimeType") or DEFAULT_MIME_TYPE),
            original_path=str(data.get("originalPath") or original_path),
        )


class ImageStore(Protocol):
    """External image collaborator used by the snapshot codec."""

    def compress(self, raw: bytes, file_name: str) -> str: ...

    def to_embeddable(self, ref: str) -> Optional[ImagePayload]: ...

    def from_embeddable(self, payload: ImagePayload, file_name: str) -> Optional[str]: ...


class FileImageStore:
    """
    Filesystem-backed image store.

    References are absolute file paths inside ``images_dir``.

    Attributes:
        images_dir: Directory holding stored images
        transform: Raw bytes -> bounded compressed bytes
    """

    def __init__(
        self,
        images_dir: Path,
        transform: Optional[Callable[[bytes], bytes]] = None,
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        self.images_dir = Path(images_dir)
        self.transform = transform
        self.logger = logger

    def _target(self, file_name: str) -> Path:
        # Basename only; references from another machine may carry foreign separators
        name = file_name.replace("\\", "/").rsplit("/", 1)[-1] or "restored_image.jpg"
        return self.images_dir / name

    def compress(self, raw: bytes, file_name: str) -> str:
        """Store image bytes (through the transform) and return the new reference."""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        data = self.transform(raw) if self.transform else raw
        target = self._target(file_name)
        target.write_bytes(data)

        safe_logger(self.logger).log_operation(
            "image_stored", {"path": str(target), "size": len(data)}
        )
        return str(target)

    def to_embeddable(self, ref: str) -> Optional[ImagePayload]:
        """
        Read a stored image as a base64 payload.

        Returns:
            Payload, or None when the reference does not resolve to a file
        """
        path = Path(ref)
        if not ref or not path.is_file():
            return None

        return ImagePayload(
            base64=base64.b64encode(path.read_bytes()).decode("ascii"),
            mime_type=guess_mime_type(ref),
            original_path=ref,
        )

    def from_embeddable(self, payload: ImagePayload, file_name: str) -> Optional[str]:
        """
        Materialize a payload as a local file.

        Returns:
            The new reference, or None when the payload is not valid base64
        """
        try:
            data = base64.b64decode(payload.base64, validate=True)
        except (binascii.Error, ValueError) as e:
            safe_logger(self.logger).log_warning(
                "Skipping undecodable image payload",
                {"original_path": payload.original_path, "error": str(e)},
            )
            return None

        self.images_dir.mkdir(parents=True, exist_ok=True)
        target = self._target(file_name)
        target.write_bytes(data)

        safe_logger(self.logger).log_operation(
            "image_restored",
            {"original_path": payload.original_path, "path": str(target)},
        )
        return str(target)
