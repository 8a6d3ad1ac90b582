"""YAML registry loading and validation."""

from __future__ import annotations

from pathlib import Path

import yaml

from mediacache.registry import Registry


def load_registry_yaml(path: str | Path) -> Registry:
    """Load a registry YAML file and return a validated Registry.

    Expected shape::

        registry:
          types:
            - kind_name: picture
              type_code: ""
              container_name: pictures
              formats: {".jpg": image/jpeg}
          sizes:
            - {label: sm, remote_size_spec: w128h128}
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Registry YAML not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or "registry" not in raw:
        raise ValueError(f"Invalid registry YAML: missing top-level 'registry' key in {path}")

    return Registry(**raw["registry"])
