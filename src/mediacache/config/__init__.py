"""Configuration — defaults, layered settings and registry YAML."""

from mediacache.config.hierarchy import load_config_hierarchy
from mediacache.config.loader import load_registry_yaml

__all__ = ["load_config_hierarchy", "load_registry_yaml"]
