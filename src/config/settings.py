"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority
# order):
#
#   1. **Environment variables** -- e.g., QDRANT_BASE_URL=http://qdrant:6333
#      (highest priority -- always wins)
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``metadata_path`` maps to env var ``METADATA_PATH`` and so on.
# Defaults target a local LM Studio instance (embeddings + chat on
# port 1234) and a local Qdrant on port 6333.
#
# Source directories are independently optional: set one to "" to skip
# that document type entirely.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge-assistant settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding Provider (OpenAI-compatible /v1/embeddings) ===
    embedding_base_url: str = "http://localhost:1234/v1"
    embedding_model: str = "text-embedding-nomic-embed-text-v1.5"
    embedding_api_key: str = ""
    embedding_dimension: int = 768
    # nomic-style asymmetric prefixes; stored chunks and queries differ.
    embedding_document_prefix: str = "search_document: "
    embedding_query_prefix: str = "search_query: "
    embedding_cache_enabled: bool = True
    embedding_cache_size: int = 10000
    embedding_cache_ttl: int = 1800
    embedding_concurrency: int = 4

    # Attribution headers some hosted gateways (OpenRouter) ask for.
    http_referer: str = ""
    app_title: str = "LocalAI Knowledge Assistant"

    # === LLM Completion Provider (OpenAI-compatible chat) ===
    llm_base_url: str = "http://localhost:1234/v1"
    llm_model: str = "qwen2.5-coder-7b-instruct"
    llm_api_key: str = ""
    llm_temperature: float = 0.0
    llm_max_tokens: int = 500

    # === Vector Store (Qdrant REST) ===
    qdrant_base_url: str = "http://localhost:6333"
    qdrant_collection: str = "knowledge"
    qdrant_api_key: str = ""
    vector_distance: str = "Cosine"
    upsert_batch_size: int = 100

    # Applied to every embedding, vector-store and LLM request.
    request_timeout: float = 60.0

    # === Document Sources ===
    transcripts_path: str = "data/transcripts"
    pdfs_path: str = "data/pdfs"
    markdown_path: str = "data/markdown"
    images_path: str = "data/images"
    emails_path: str = "data/emails"
    webpages_path: str = "data/webpages"
    epubs_path: str = "data/epubs"
    sources_config_path: str = "config/config.yaml"

    # === Processing Ledger ===
    metadata_path: str = "data/metadata"

    # === Chunking / Retrieval ===
    chunk_overlap: int = 50
    search_limit: int = 5

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def source_paths(self) -> dict[str, str]:
        """Return the configured directory for each document type, keyed by type name."""
        return {
            "transcript": self.transcripts_path,
            "pdf": self.pdfs_path,
            "markdown": self.markdown_path,
            "image": self.images_path,
            "email": self.emails_path,
            "webpage": self.webpages_path,
            "epub": self.epubs_path,
        }
