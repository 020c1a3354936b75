"""Tests for Config."""

from pathlib import Path

from code_xref.config import Config


class TestConfig:
    def test_default_paths(self):
        """Default base_dir is ~/.code-xref with correct derived paths."""
        config = Config()
        assert config.base_dir == Path.home() / ".code-xref"
        assert config.storage_path == config.base_dir / "storage"
        assert config.db_path == config.storage_path / "chunks.db"
        assert config.log_dir == config.base_dir / "logs"
        assert config.lance_path == config.base_dir / "lance"

    def test_custom_base_dir(self, tmp_path):
        """Custom base_dir propagates to all derived paths."""
        custom = tmp_path / "custom-xref"
        config = Config(base_dir=custom)
        assert config.base_dir == custom
        assert config.db_path == custom / "storage" / "chunks.db"
        assert config.log_dir == custom / "logs"

    def test_ensure_dirs_creates_structure(self, tmp_path):
        """ensure_dirs creates base, storage, and log dirs."""
        config = Config(base_dir=tmp_path / "new-dir")
        assert not config.base_dir.exists()
        config.ensure_dirs()
        assert config.base_dir.exists()
        assert config.storage_path.exists()
        assert config.log_dir.exists()

    def test_analysis_defaults(self):
        """Depth, fallback, and hotspot thresholds default to the documented values."""
        config = Config()
        assert config.trace_max_depth == 10
        assert config.fallback_top_k == 10
        assert config.hotspot_complexity_threshold == 10
        assert config.hotspot_coupling_threshold == 5
        assert config.signature_preview_chars == 100
