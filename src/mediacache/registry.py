"""Type/size registry — which media kinds and thumbnail sizes the cache knows.

The registry is an immutable value built once at startup and passed
explicitly to every cache operation. ``cache_dir`` fields stay ``None``
until :func:`mediacache.cache.directories.initialize_cache` returns a
resolved copy.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mediacache.errors.exceptions import InvalidArgumentError

THUMBNAIL_DIR_PREFIX = "pic-"


class MediaFormat(BaseModel):
    """A file extension, its MIME type and the kind it belongs to."""

    model_config = ConfigDict(frozen=True)

    extension: str
    mime_type: str
    kind: str


class TypeInfo(BaseModel):
    """One supported media kind (picture, video)."""

    model_config = ConfigDict(frozen=True)

    kind_name: str
    type_code: str = ""
    container_name: str
    cache_dir_name: str
    cache_dir: Path | None = None
    extension_to_format: dict[str, MediaFormat] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _expand_formats(cls, data: Any) -> Any:
        # YAML registries list formats as {".jpg": "image/jpeg"}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        kind = data.get("kind_name", "")
        formats = data.pop("formats", None) or {}
        expanded = dict(data.get("extension_to_format") or {})
        for ext, mime in formats.items():
            ext = ext.lower()
            expanded[ext] = MediaFormat(extension=ext, mime_type=mime, kind=kind)
        data["extension_to_format"] = expanded
        data.setdefault("cache_dir_name", data.get("container_name", kind))
        return data


class SizeInfo(BaseModel):
    """One supported thumbnail size."""

    model_config = ConfigDict(frozen=True)

    label: str
    remote_size_spec: str
    cache_dir: Path | None = None

    @property
    def cache_dir_name(self) -> str:
        return f"{THUMBNAIL_DIR_PREFIX}{self.label}"


class Registry(BaseModel):
    """All registered media kinds and thumbnail sizes."""

    model_config = ConfigDict(frozen=True)

    types: tuple[TypeInfo, ...]
    sizes: tuple[SizeInfo, ...]

    @property
    def initialized(self) -> bool:
        return all(t.cache_dir is not None for t in self.types) and all(
            s.cache_dir is not None for s in self.sizes
        )

    @property
    def kinds(self) -> list[str]:
        return [t.kind_name for t in self.types]

    @property
    def size_labels(self) -> list[str]:
        return [s.label for s in self.sizes]

    def type_for_kind(self, kind: str) -> TypeInfo:
        for tinfo in self.types:
            if tinfo.kind_name == kind:
                return tinfo
        raise InvalidArgumentError(f"Unknown media kind: {kind}")

    def type_for_code(self, type_code: str) -> TypeInfo | None:
        code = type_code.upper()
        for tinfo in self.types:
            if tinfo.type_code == code:
                return tinfo
        return None

    def format_for(self, type_code: str, extension: str) -> MediaFormat | None:
        """Return the format for a parsed type code + extension, or None."""
        tinfo = self.type_for_code(type_code)
        if tinfo is None:
            return None
        return tinfo.extension_to_format.get(extension.lower())

    def size_for(self, label: str) -> SizeInfo:
        for szinfo in self.sizes:
            if szinfo.label == label:
                return szinfo
        raise InvalidArgumentError(f"Unknown size: {label}")


def _picture() -> TypeInfo:
    return TypeInfo(
        kind_name="picture",
        type_code="",
        container_name="pictures",
        cache_dir_name="pictures",
        formats={
            ".jpg": "image/jpeg",
            ".jpeg": "image/jpeg",
            ".gif": "image/gif",
            ".png": "image/png",
        },
    )


def _video() -> TypeInfo:
    return TypeInfo(
        kind_name="video",
        type_code="V",
        container_name="videos",
        cache_dir_name="videos",
        formats={
            ".mp4": "video/mp4",
            ".mov": "video/quicktime",
            ".avi": "video/x-msvideo",
            ".wmv": "video/x-ms-wmv",
            ".3gp": "video/3gpp",
        },
    )


def default_registry() -> Registry:
    """Pictures and videos, thumbnails at sm/md/lg."""
    return Registry(
        types=(_picture(), _video()),
        sizes=(
            SizeInfo(label="sm", remote_size_spec="w128h128"),
            SizeInfo(label="md", remote_size_spec="w640h480"),
            SizeInfo(label="lg", remote_size_spec="w1024h768"),
        ),
    )
