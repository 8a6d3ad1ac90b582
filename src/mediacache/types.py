"""Shared Pydantic models for mediacache."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mediacache.naming import FileNameParts, parse_file
from mediacache.registry import MediaFormat, Registry


class ObjectIdentity(BaseModel):
    """Stable id + revision naming one version of a remote object.

    A new revision is a different cache key, so files cached for an older
    revision are orphaned rather than overwritten.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    revision: str

    @property
    def cache_name(self) -> str:
        return f"{self.id}_{self.revision}"

    def __str__(self) -> str:
        return self.cache_name


class RemoteMetadata(BaseModel):
    """Metadata the remote store reports for a path."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    rev: str | None = None
    tag: str = Field(default="file", alias=".tag")
    path_display: str | None = None
    size: int | None = None

    @property
    def is_folder(self) -> bool:
        return self.tag == "folder"


class MediaObject(BaseModel):
    """A remote media file as the cache sees it.

    Holds no stream or buffer state; it names the object, the format it
    was registered under and where its cache files live.
    """

    model_config = ConfigDict(frozen=True)

    identity: ObjectIdentity
    remote_id: str
    display_name: str
    sequence_number: int
    format: MediaFormat

    @classmethod
    def from_metadata(
        cls,
        meta: RemoteMetadata,
        registry: Registry,
        parts: FileNameParts | None = None,
    ) -> MediaObject | None:
        """Build a media object from remote metadata.

        Returns None when the name does not follow the file convention or
        its type/extension is not registered.
        """
        if meta.is_folder or meta.rev is None:
            return None
        parts = parts or parse_file(meta.name)
        if parts is None:
            return None
        fmt = registry.format_for(parts.type, parts.ext)
        if fmt is None:
            return None
        return cls(
            identity=ObjectIdentity(id=parts.id, revision=meta.rev),
            remote_id=meta.id,
            display_name=meta.name,
            sequence_number=parts.num,
            format=fmt,
        )

    @property
    def kind(self) -> str:
        return self.format.kind

    def cache_path(self, cache_dir: Path) -> Path:
        from mediacache.cache.keys import cache_path

        return cache_path(cache_dir, self.identity)

    def represent(self) -> dict[str, str]:
        return {"name": self.display_name, "id": self.identity.id}
