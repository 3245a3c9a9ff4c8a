"""
Configuration management for gist-notes
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml


# Observed working values; all of them are tunables, not contracts.
DEFAULT_SIMILARITY_THRESHOLD = 0.56
DEFAULT_SOFT_CAP_SIZE = 6
DEFAULT_SOFT_CAP_THRESHOLD = 0.68
DEFAULT_HARD_CAP_SIZE = 10
DEFAULT_NOTE_WEIGHT = 0.7
DEFAULT_LABEL_WEIGHT = 0.3
DEFAULT_LEXICAL_THRESHOLD = 0.6


@dataclass
class ClusteringConfig:
    """Topic assignment tunables"""
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    soft_cap_size: int = DEFAULT_SOFT_CAP_SIZE
    soft_cap_threshold: float = DEFAULT_SOFT_CAP_THRESHOLD
    hard_cap_size: int = DEFAULT_HARD_CAP_SIZE
    note_weight: float = DEFAULT_NOTE_WEIGHT
    label_weight: float = DEFAULT_LABEL_WEIGHT
    lexical_threshold: float = DEFAULT_LEXICAL_THRESHOLD

    def __post_init__(self):
        if abs(self.note_weight + self.label_weight - 1.0) > 1e-9:
            raise ValueError(
                f"note_weight + label_weight must equal 1, got "
                f"{self.note_weight} + {self.label_weight}"
            )
        if self.hard_cap_size < 1:
            raise ValueError("hard_cap_size must be at least 1")


@dataclass
class StorageConfig:
    """Persistence configuration"""
    data_dir: str = "data"


@dataclass
class LLMConfig:
    """Summarization and embedding provider configuration"""
    provider: str = "litellm"
    summarize_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    temperature: float = 0.2
    max_tokens: int = 1500


@dataclass
class Config:
    """Main configuration class for gist-notes"""
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)

    _instance: Optional["Config"] = field(default=None, init=False, repr=False)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file or use defaults.

        Args:
            config_path: Path to config file. Defaults to config.yaml in the working directory.

        Returns:
            Config instance with loaded or default settings.
        """
        if config_path is None:
            config_path = Path("config.yaml")

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "clustering" in data:
            clustering_data = data["clustering"] or {}
            values = {
                key: clustering_data[key]
                for key in [
                    "similarity_threshold",
                    "soft_cap_size",
                    "soft_cap_threshold",
                    "hard_cap_size",
                    "note_weight",
                    "label_weight",
                    "lexical_threshold",
                ]
                if key in clustering_data
            }
            # Rebuild so the weight check sees both values together
            current = config.clustering.__dict__.copy()
            current.update(values)
            config.clustering = ClusteringConfig(**current)

        if "storage" in data:
            storage_data = data["storage"] or {}
            if "data_dir" in storage_data:
                config.storage.data_dir = storage_data["data_dir"]

        if "llm" in data:
            llm_data = data["llm"] or {}
            for key in ["provider", "summarize_model", "embedding_model",
                        "temperature", "max_tokens"]:
                if key in llm_data:
                    setattr(config.llm, key, llm_data[key])

        return config

    @classmethod
    def get_instance(cls, config_path: Optional[Path] = None) -> "Config":
        """Get singleton instance of Config.

        Args:
            config_path: Path to config file (only used on first call).

        Returns:
            Singleton Config instance.
        """
        if cls._instance is None:
            cls._instance = cls.load(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        cls._instance = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """Convenience function to get config singleton.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        Config singleton instance.
    """
    return Config.get_instance(config_path)
