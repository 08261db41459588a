"""
Configuration for Keepsake.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llama3.1:8b"
    # None selects the provider default (Ollama: http://localhost:11434)
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.0
    max_tokens: int = 2000
    timeout: float = 120.0
    # Ollama only: how long the model stays loaded between turns (e.g. "10m")
    keep_alive: str | None = None


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "nomic-embed-text"
    # None selects the provider default (Ollama: http://localhost:11434)
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 120.0
    # Optional: embedding dimension (fallback to auto-detect)
    dimension: int | None = None


class QdrantConfig(BaseModel):
    """Qdrant vector store configuration."""

    url: str = "http://localhost:6333"
    # ":memory:" or a directory path runs the embedded engine instead of a server
    location: str | None = None
    collection_name: str = "memories"
    use_grpc: bool = False
    hnsw_m: int = 16
    hnsw_ef_construct: int = 100
    use_quantization: bool = False
    quantization_type: str = "int8"
    on_disk: bool = False
    batch_size: int = 256
    timeout: int = 30
    migrate_on_dimension_mismatch: bool = False


class DedupConfig(BaseModel):
    """
    Cosine-distance thresholds for the dedup probe.

    Facts dedup aggressively, every other kind conservatively. The values are
    empirical calibration.
    """

    fact_threshold: float = Field(default=0.10, ge=0.0, le=2.0)
    entry_threshold: float = Field(default=0.05, ge=0.0, le=2.0)


class ContextConfig(BaseModel):
    """Prompt context window sizes."""

    share_facts_across_owners: bool = True
    fact_window: int = 50
    recent_window: int = 10
    recent_overfetch: int = 30


class ExtractionConfig(BaseModel):
    """Extraction pipeline limits."""

    related_limit: int = 5
    max_self_entries: int = 20
    max_notes: int = 50
    bio_max_length: int = 50
    max_tokens: int = 2000


class StorageConfig(BaseModel):
    """Locations of the JSON documents."""

    data_dir: str = "./data"
    people_file: str = "people.json"
    self_knowledge_file: str = "core-memories.json"
    notes_file: str = "notes.json"
    persona_file: str = "persona.json"

    def path_for(self, file_name: str) -> Path:
        return Path(self.data_dir) / file_name


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            KEEPSAKE_LLM_PROVIDER: LLM provider (ollama, openai)
            KEEPSAKE_LLM_MODEL: LLM model name
            KEEPSAKE_LLM_BASE_URL: LLM base URL
            KEEPSAKE_LLM_API_KEY: LLM API key (for OpenAI)
            KEEPSAKE_EMBEDDER_PROVIDER: Embedder provider
            KEEPSAKE_EMBEDDER_MODEL: Embedder model name
            KEEPSAKE_EMBEDDER_API_KEY: Embedder API key (for OpenAI)
            KEEPSAKE_EMBEDDER_DIMENSION: Embedding dimension (optional)
            KEEPSAKE_QDRANT_URL: Qdrant URL
            KEEPSAKE_QDRANT_LOCATION: Embedded Qdrant location (":memory:" or a path)
            KEEPSAKE_QDRANT_COLLECTION: Qdrant collection name
            KEEPSAKE_DEDUP_FACT_THRESHOLD: Dedup distance for user facts
            KEEPSAKE_DEDUP_ENTRY_THRESHOLD: Dedup distance for every other kind
            KEEPSAKE_DATA_DIR: Directory holding the JSON documents
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            llm=LLMConfig(
                provider=get_env("KEEPSAKE_LLM_PROVIDER", "ollama"),
                model=get_env("KEEPSAKE_LLM_MODEL", "llama3.1:8b"),
                base_url=get_env("KEEPSAKE_LLM_BASE_URL"),
                api_key=get_env("KEEPSAKE_LLM_API_KEY"),
                temperature=get_env("KEEPSAKE_LLM_TEMPERATURE", 0.0),
                max_tokens=get_env("KEEPSAKE_LLM_MAX_TOKENS", 2000),
                timeout=get_env("KEEPSAKE_LLM_TIMEOUT", 120.0),
                keep_alive=get_env("KEEPSAKE_LLM_KEEP_ALIVE"),
            ),
            embedder=EmbedderConfig(
                provider=get_env("KEEPSAKE_EMBEDDER_PROVIDER", "ollama"),
                model=get_env("KEEPSAKE_EMBEDDER_MODEL", "nomic-embed-text"),
                base_url=get_env("KEEPSAKE_EMBEDDER_BASE_URL"),
                api_key=get_env("KEEPSAKE_EMBEDDER_API_KEY"),
                timeout=get_env("KEEPSAKE_EMBEDDER_TIMEOUT", 120.0),
                dimension=get_env("KEEPSAKE_EMBEDDER_DIMENSION"),
            ),
            qdrant=QdrantConfig(
                url=get_env("KEEPSAKE_QDRANT_URL", "http://localhost:6333"),
                location=get_env("KEEPSAKE_QDRANT_LOCATION"),
                collection_name=get_env("KEEPSAKE_QDRANT_COLLECTION", "memories"),
                use_grpc=get_env("KEEPSAKE_QDRANT_USE_GRPC", False),
                hnsw_m=get_env("KEEPSAKE_QDRANT_HNSW_M", 16),
                hnsw_ef_construct=get_env("KEEPSAKE_QDRANT_HNSW_EF_CONSTRUCT", 100),
                use_quantization=get_env("KEEPSAKE_QDRANT_USE_QUANTIZATION", False),
                quantization_type=get_env("KEEPSAKE_QDRANT_QUANTIZATION_TYPE", "int8"),
                on_disk=get_env("KEEPSAKE_QDRANT_ON_DISK", False),
                migrate_on_dimension_mismatch=get_env("KEEPSAKE_QDRANT_MIGRATE_ON_MISMATCH", False),
            ),
            dedup=DedupConfig(
                fact_threshold=get_env("KEEPSAKE_DEDUP_FACT_THRESHOLD", 0.10),
                entry_threshold=get_env("KEEPSAKE_DEDUP_ENTRY_THRESHOLD", 0.05),
            ),
            context=ContextConfig(
                share_facts_across_owners=get_env("KEEPSAKE_CONTEXT_SHARE_FACTS", True),
                fact_window=get_env("KEEPSAKE_CONTEXT_FACT_WINDOW", 50),
                recent_window=get_env("KEEPSAKE_CONTEXT_RECENT_WINDOW", 10),
                recent_overfetch=get_env("KEEPSAKE_CONTEXT_RECENT_OVERFETCH", 30),
            ),
            extraction=ExtractionConfig(
                related_limit=get_env("KEEPSAKE_EXTRACTION_RELATED_LIMIT", 5),
                max_self_entries=get_env("KEEPSAKE_EXTRACTION_MAX_SELF_ENTRIES", 20),
                max_notes=get_env("KEEPSAKE_EXTRACTION_MAX_NOTES", 50),
                bio_max_length=get_env("KEEPSAKE_EXTRACTION_BIO_MAX_LENGTH", 50),
                max_tokens=get_env("KEEPSAKE_EXTRACTION_MAX_TOKENS", 2000),
            ),
            storage=StorageConfig(
                data_dir=get_env("KEEPSAKE_DATA_DIR", "./data"),
            ),
            logging=LoggingConfig(
                level=get_env("KEEPSAKE_LOG_LEVEL", "INFO"),
                log_to_file=get_env("KEEPSAKE_LOG_TO_FILE", True),
                log_dir=get_env("KEEPSAKE_LOG_DIR", "logs"),
                file_rotation=get_env("KEEPSAKE_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("KEEPSAKE_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("KEEPSAKE_LOG_COMPRESSION", "zip"),
                serialize=get_env("KEEPSAKE_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        # Start with YAML if provided
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Merge: env vars override YAML, section by section
        final_dict = {**config_dict}
        default = cls()
        for section in (
            "llm",
            "embedder",
            "qdrant",
            "dedup",
            "context",
            "extraction",
            "storage",
            "logging",
        ):
            if getattr(env_config, section) != getattr(default, section):
                final_dict[section] = getattr(env_config, section).model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
