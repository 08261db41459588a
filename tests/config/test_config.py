"""
Tests for configuration management.

Tests config loading from:
1. Environment variables
2. YAML files
3. Combined (env overrides YAML)
"""

import os

import pytest
import yaml

from keepsake.config import Config, DedupConfig, EmbedderConfig, LLMConfig, StorageConfig


@pytest.mark.unit
class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_config_creation(self):
        """Test creating config with defaults."""
        config = Config()

        # LLM defaults
        assert config.llm.provider == "ollama"
        assert config.llm.model == "llama3.1:8b"
        assert config.llm.base_url is None
        assert config.llm.api_key is None
        assert config.llm.temperature == 0.0

        # Embedder defaults
        assert config.embedder.provider == "ollama"
        assert config.embedder.model == "nomic-embed-text"
        assert config.embedder.dimension is None  # Auto-detect

        # Qdrant defaults
        assert config.qdrant.url == "http://localhost:6333"
        assert config.qdrant.location is None
        assert config.qdrant.collection_name == "memories"
        assert config.qdrant.migrate_on_dimension_mismatch is False

    def test_dedup_defaults(self):
        """Facts dedup more loosely than other kinds."""
        config = Config()

        assert config.dedup.fact_threshold == 0.10
        assert config.dedup.entry_threshold == 0.05

    def test_dedup_threshold_bounds(self):
        """Cosine distance thresholds must lie in [0, 2]."""
        with pytest.raises(ValueError):
            DedupConfig(fact_threshold=-0.1)
        with pytest.raises(ValueError):
            DedupConfig(entry_threshold=2.5)

    def test_context_and_extraction_defaults(self):
        """Test prompt window and extraction limit defaults."""
        config = Config()

        assert config.context.share_facts_across_owners is True
        assert config.context.fact_window == 50
        assert config.context.recent_window == 10
        assert config.context.recent_overfetch == 30
        assert config.extraction.related_limit == 5
        assert config.extraction.max_self_entries == 20
        assert config.extraction.max_notes == 50
        assert config.extraction.bio_max_length == 50

    def test_storage_paths(self, tmp_path):
        """Document paths resolve under the data directory."""
        storage = StorageConfig(data_dir=str(tmp_path))

        assert storage.path_for(storage.people_file) == tmp_path / "people.json"
        assert storage.path_for(storage.self_knowledge_file) == tmp_path / "core-memories.json"
        assert storage.path_for(storage.notes_file) == tmp_path / "notes.json"

    def test_llm_config_creation(self):
        """Test creating LLM config."""
        llm_config = LLMConfig(
            provider="openai",
            model="gpt-4o",
            api_key="sk-test",
            temperature=0.7,
        )

        assert llm_config.provider == "openai"
        assert llm_config.model == "gpt-4o"
        assert llm_config.api_key == "sk-test"
        assert llm_config.temperature == 0.7

    def test_embedder_config_with_dimension(self):
        """Test embedder config with explicit dimension."""
        embedder_config = EmbedderConfig(
            provider="openai",
            model="text-embedding-3-small",
            dimension=1536,
        )

        assert embedder_config.dimension == 1536


@pytest.mark.unit
class TestConfigFromEnv:
    """Test loading configuration from environment variables."""

    def test_from_env_basic(self, monkeypatch):
        """Test loading basic config from environment."""
        monkeypatch.setenv("KEEPSAKE_LLM_PROVIDER", "openai")
        monkeypatch.setenv("KEEPSAKE_LLM_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("KEEPSAKE_LLM_API_KEY", "sk-test-key")
        monkeypatch.setenv("KEEPSAKE_EMBEDDER_PROVIDER", "openai")
        monkeypatch.setenv("KEEPSAKE_EMBEDDER_MODEL", "text-embedding-3-small")

        config = Config.from_env()

        assert config.llm.provider == "openai"
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.api_key == "sk-test-key"
        assert config.embedder.provider == "openai"
        assert config.embedder.model == "text-embedding-3-small"

    def test_from_env_with_numbers(self, monkeypatch):
        """Test loading numeric values from environment."""
        monkeypatch.setenv("KEEPSAKE_LLM_TEMPERATURE", "0.7")
        monkeypatch.setenv("KEEPSAKE_LLM_MAX_TOKENS", "4000")
        monkeypatch.setenv("KEEPSAKE_DEDUP_FACT_THRESHOLD", "0.2")
        monkeypatch.setenv("KEEPSAKE_CONTEXT_FACT_WINDOW", "25")

        config = Config.from_env()

        assert config.llm.temperature == 0.7
        assert config.llm.max_tokens == 4000
        assert config.dedup.fact_threshold == 0.2
        assert config.context.fact_window == 25

    def test_from_env_with_booleans(self, monkeypatch):
        """Test loading boolean values from environment."""
        monkeypatch.setenv("KEEPSAKE_QDRANT_USE_GRPC", "true")
        monkeypatch.setenv("KEEPSAKE_QDRANT_MIGRATE_ON_MISMATCH", "1")
        monkeypatch.setenv("KEEPSAKE_CONTEXT_SHARE_FACTS", "no")

        config = Config.from_env()

        assert config.qdrant.use_grpc is True
        assert config.qdrant.migrate_on_dimension_mismatch is True
        assert config.context.share_facts_across_owners is False

    def test_from_env_qdrant_location(self, monkeypatch):
        """Embedded Qdrant location comes from the environment."""
        monkeypatch.setenv("KEEPSAKE_QDRANT_LOCATION", ":memory:")
        monkeypatch.setenv("KEEPSAKE_QDRANT_COLLECTION", "test_memories")

        config = Config.from_env()

        assert config.qdrant.location == ":memory:"
        assert config.qdrant.collection_name == "test_memories"

    def test_from_env_with_dotenv_file(self, tmp_path):
        """Test loading from .env file."""
        keys = {
            "KEEPSAKE_LLM_PROVIDER": "openai",
            "KEEPSAKE_LLM_MODEL": "gpt-4o",
            "KEEPSAKE_LLM_API_KEY": "sk-from-file",
            "KEEPSAKE_DATA_DIR": "/var/lib/keepsake",
        }
        env_file = tmp_path / ".env.test"
        env_file.write_text("\n".join(f"{key}={value}" for key, value in keys.items()))

        try:
            config = Config.from_env(env_file=str(env_file))
        finally:
            # load_dotenv writes into os.environ
            for key in keys:
                os.environ.pop(key, None)

        assert config.llm.provider == "openai"
        assert config.llm.model == "gpt-4o"
        assert config.llm.api_key == "sk-from-file"
        assert config.storage.data_dir == "/var/lib/keepsake"

    def test_from_env_empty_value_uses_default(self, monkeypatch):
        """Empty strings fall back to defaults."""
        monkeypatch.setenv("KEEPSAKE_LLM_MODEL", "")

        config = Config.from_env()

        assert config.llm.model == "llama3.1:8b"


@pytest.mark.unit
class TestConfigFromYAML:
    """Test loading configuration from YAML files."""

    def test_from_yaml_basic(self, tmp_path):
        """Test loading config from YAML file."""
        yaml_file = tmp_path / "config.yaml"
        config_data = {
            "llm": {"provider": "openai", "model": "gpt-4o", "api_key": "sk-yaml-key"},
            "embedder": {"provider": "openai", "model": "text-embedding-3-large", "dimension": 3072},
            "dedup": {"fact_threshold": 0.12},
            "storage": {"data_dir": "/srv/keepsake"},
        }
        yaml_file.write_text(yaml.dump(config_data))

        config = Config.from_yaml(str(yaml_file))

        assert config.llm.provider == "openai"
        assert config.llm.api_key == "sk-yaml-key"
        assert config.embedder.dimension == 3072
        assert config.dedup.fact_threshold == 0.12
        assert config.dedup.entry_threshold == 0.05
        assert config.storage.data_dir == "/srv/keepsake"

    def test_from_yaml_missing_file(self, tmp_path):
        """Test error when YAML file doesn't exist."""
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_empty_file(self, tmp_path):
        """An empty YAML file yields defaults."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("")

        config = Config.from_yaml(yaml_file)

        assert config == Config()


@pytest.mark.unit
class TestConfigEnvOrYAML:
    """Test env-over-YAML precedence."""

    def test_env_overrides_yaml_section(self, tmp_path, monkeypatch):
        """A section set in the environment replaces the YAML section."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text(
            yaml.dump(
                {
                    "llm": {"provider": "ollama", "model": "mistral"},
                    "qdrant": {"collection_name": "from_yaml"},
                }
            )
        )
        monkeypatch.setenv("KEEPSAKE_LLM_MODEL", "llama3.2")

        config = Config.from_env_or_yaml(yaml_path=yaml_file)

        assert config.llm.model == "llama3.2"
        assert config.qdrant.collection_name == "from_yaml"

    def test_yaml_only(self, tmp_path):
        """Without env overrides the YAML values survive."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text(yaml.dump({"context": {"recent_window": 7}}))

        config = Config.from_env_or_yaml(yaml_path=yaml_file)

        assert config.context.recent_window == 7
