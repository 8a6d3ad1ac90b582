"""Tests for identities and media objects."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from mediacache.registry import default_registry
from mediacache.types import MediaObject, ObjectIdentity, RemoteMetadata


class TestObjectIdentity:
    def test_cache_name(self):
        assert ObjectIdentity(id="ABC123", revision="5").cache_name == "ABC123_5"

    def test_frozen(self):
        identity = ObjectIdentity(id="ABC123", revision="5")
        with pytest.raises(ValidationError):
            identity.revision = "6"

    def test_equality_and_hash(self):
        a = ObjectIdentity(id="A", revision="1")
        b = ObjectIdentity(id="A", revision="1")
        assert a == b
        assert len({a, b}) == 1


class TestRemoteMetadata:
    def test_dropbox_payload(self):
        meta = RemoteMetadata.model_validate({
            ".tag": "file",
            "id": "id:a4ayc_80_OEAAAAAAAAAXw",
            "name": "AB1-3.jpg",
            "rev": "a1c10ce0dd78",
            "size": 7212,
            "client_modified": "2015-05-12T15:50:38Z",
        })
        assert meta.rev == "a1c10ce0dd78"
        assert not meta.is_folder

    def test_folder(self):
        meta = RemoteMetadata.model_validate({".tag": "folder", "id": "id:f", "name": "AB1"})
        assert meta.is_folder
        assert meta.rev is None


class TestMediaObject:
    def test_from_metadata(self, picture_metadata):
        media = MediaObject.from_metadata(picture_metadata, default_registry())
        assert media.identity == ObjectIdentity(id="ABC12-3", revision="5")
        assert media.remote_id == "id:abc123"
        assert media.sequence_number == 3
        assert media.kind == "picture"
        assert media.format.mime_type == "image/jpeg"

    def test_video(self):
        meta = RemoteMetadata(id="id:v", name="AB1-V2 - clip.mp4", rev="9")
        media = MediaObject.from_metadata(meta, default_registry())
        assert media.kind == "video"
        assert media.identity.id == "AB1-V2"

    def test_unregistered_extension(self):
        meta = RemoteMetadata(id="id:x", name="AB1-2 - notes.txt", rev="1")
        assert MediaObject.from_metadata(meta, default_registry()) is None

    def test_unconventional_name(self):
        meta = RemoteMetadata(id="id:x", name="IMG_0001.jpg", rev="1")
        assert MediaObject.from_metadata(meta, default_registry()) is None

    def test_folder_is_not_media(self):
        meta = RemoteMetadata(id="id:f", name="AB1-2.jpg", tag="folder")
        assert MediaObject.from_metadata(meta, default_registry()) is None

    def test_cache_path_and_represent(self, picture_metadata):
        media = MediaObject.from_metadata(picture_metadata, default_registry())
        assert media.cache_path(Path("/c/pictures")) == Path("/c/pictures/ABC12-3_5")
        assert media.represent() == {"name": "ABC12-0003 - beach.jpg", "id": "ABC12-3"}
