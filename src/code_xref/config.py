"""Configuration management for code-xref."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Config:
    """Central configuration with path properties and analysis thresholds."""

    base_dir: Path = field(default_factory=lambda: Path.home() / ".code-xref")

    # Embedding (query-side only, used by the similarity fallback)
    embedding_model: str = "Qwen/Qwen3-Embedding-0.6B"
    embedding_dim: int = 1024
    embedding_device: str = "cpu"

    # Call graph tracing
    trace_max_depth: int = 10
    fallback_top_k: int = 10

    # Dependency hotspots
    hotspot_complexity_threshold: int = 10
    hotspot_coupling_threshold: int = 5

    # Related-file lookup
    related_similarity_threshold: float = 0.7
    related_top_k: int = 50

    # Index builder
    signature_preview_chars: int = 100

    @property
    def storage_path(self) -> Path:
        return self.base_dir / "storage"

    @property
    def db_path(self) -> Path:
        return self.storage_path / "chunks.db"

    @property
    def lance_path(self) -> Path:
        return self.base_dir / "lance"

    @property
    def log_dir(self) -> Path:
        return self.base_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create directory tree if it doesn't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.storage_path.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
