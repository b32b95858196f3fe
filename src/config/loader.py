"""YAML document-source table with environment overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. Built-in defaults   -- _DEFAULT_SOURCES below
#   2. config/config.yaml  -- static per-type settings checked into the repo
#   3. .env / environment  -- source directories (TRANSCRIPTS_PATH, PDFS_PATH, ...)
#
# The YAML file only needs to mention what it changes:
#
#   sources:
#     pdf:
#       max_chunk_chars: 800
#
# deep-merges into the defaults, leaving the PDF extensions untouched.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from src.config.settings import Settings
from src.models.sources import DocumentSourceConfig
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_IMAGE_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif"]

# Processing order matches the order of this table.
_DEFAULT_SOURCES: dict[str, dict[str, Any]] = {
    "transcript": {
        "display_name": "Transcript",
        "extensions": [".txt"],
        "recursive": False,
        "max_chunk_chars": 500,
    },
    "pdf": {
        "display_name": "PDF",
        "extensions": [".pdf"],
        "max_chunk_chars": 600,
        "paginated": True,
        "location_prefix": "Page",
    },
    "markdown": {
        "display_name": "Markdown",
        "extensions": [".md", ".markdown"],
        "max_chunk_chars": 600,
    },
    "image": {
        "display_name": "Image",
        "extensions": _IMAGE_EXTENSIONS,
        "max_chunk_chars": 600,
    },
    "email": {
        "display_name": "Email",
        "extensions": [".eml"],
        "max_chunk_chars": 600,
    },
    "webpage": {
        "display_name": "Web Page",
        "extensions": [".html", ".htm"],
        "max_chunk_chars": 600,
    },
    "epub": {
        "display_name": "EPUB",
        "extensions": [".epub"],
        "max_chunk_chars": 600,
        "paginated": True,
        "location_prefix": "Section",
    },
}


def load_config(path: str = "config/config.yaml") -> dict:
    """Load the YAML config and merge it over the built-in defaults.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
              an error; the defaults are returned.

    Returns:
        Configuration dictionary with at least a ``sources`` mapping.

    Raises:
        ConfigurationError: If the file exists but is not valid YAML.
    """
    config: dict[str, Any] = {"sources": copy.deepcopy(_DEFAULT_SOURCES)}

    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                message=f"Invalid YAML in {config_path}: {exc}",
                provider_name="config",
            ) from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(
                message=f"{config_path} must contain a mapping at the top level",
                provider_name="config",
            )
        _deep_merge(config, yaml_config)
    else:
        logger.debug("config_file_missing", path=str(config_path))

    return config


def load_document_sources(settings: Settings | None = None) -> list[DocumentSourceConfig]:
    """Build the validated document-source table.

    Directory paths come from *settings* (environment wins over YAML);
    everything else comes from the YAML table.

    Raises:
        ConfigurationError: If a source entry fails validation.
    """
    settings = settings or Settings()
    config = load_config(settings.sources_config_path)
    paths = settings.source_paths()

    sources: list[DocumentSourceConfig] = []
    for document_type, raw in (config.get("sources") or {}).items():
        entry = dict(raw or {})
        entry["document_type"] = document_type
        if document_type in paths:
            entry["path"] = paths[document_type]
        try:
            sources.append(DocumentSourceConfig.model_validate(entry))
        except ValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid source configuration for '{document_type}': {exc}",
                provider_name="config",
            ) from exc
    return sources


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
