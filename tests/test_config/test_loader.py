"""Tests for registry YAML loading."""

import pytest

from mediacache.config.loader import load_registry_yaml

REGISTRY_YAML = """
registry:
  types:
    - kind_name: picture
      type_code: ""
      container_name: pictures
      formats:
        .jpg: image/jpeg
        .HEIC: image/heic
    - kind_name: video
      type_code: V
      container_name: videos
      cache_dir_name: movies
      formats:
        .mp4: video/mp4
  sizes:
    - label: sm
      remote_size_spec: w128h128
    - label: xl
      remote_size_spec: w2048h1536
"""


class TestLoadRegistryYaml:
    def test_loads(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text(REGISTRY_YAML)
        registry = load_registry_yaml(path)

        assert registry.kinds == ["picture", "video"]
        assert registry.size_labels == ["sm", "xl"]
        assert registry.format_for("", ".heic").mime_type == "image/heic"
        assert registry.type_for_kind("picture").cache_dir_name == "pictures"
        assert registry.type_for_kind("video").cache_dir_name == "movies"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_registry_yaml(tmp_path / "nope.yaml")

    def test_missing_top_level_key(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text("types: []\n")
        with pytest.raises(ValueError, match="registry"):
            load_registry_yaml(path)
