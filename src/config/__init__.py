"""Configuration module -- exports Settings and the YAML source-table loaders."""

from src.config.loader import load_config, load_document_sources
from src.config.settings import Settings

__all__ = ["Settings", "load_config", "load_document_sources"]
