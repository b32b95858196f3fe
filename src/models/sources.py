"""Document-source configuration models.

One :class:`DocumentSourceConfig` per supported document type, built by
:func:`src.config.loader.load_document_sources` from ``config/config.yaml``
merged with the per-type directories in :class:`~src.config.settings.Settings`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentSourceConfig(BaseModel):
    """Where to find one document type and how to chunk it."""

    model_config = ConfigDict(frozen=True)

    document_type: str = Field(description="Metadata tag for the type, e.g. 'pdf'.")
    display_name: str = Field(default="", description="Label used in processing metadata.")
    path: str = Field(default="", description="Source directory; empty disables the type.")
    extensions: list[str] = Field(default_factory=list)
    recursive: bool = True
    max_chunk_chars: int = Field(default=600, ge=1)
    paginated: bool = False
    location_prefix: str = Field(
        default="Page", description="Label prefix for page breakpoints ('Page', 'Section')."
    )

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @property
    def enabled(self) -> bool:
        return bool(self.path)

    def matches(self, file_name: str) -> bool:
        """Return True when *file_name* carries one of this type's extensions."""
        lowered = file_name.lower()
        return any(lowered.endswith(ext) for ext in self.extensions)
