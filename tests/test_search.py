"""Tests for the embedder, the LanceDB vector table, and VectorSimilarity."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from code_xref.xref.exceptions import CollaboratorUnavailableError

# ---------------------------------------------------------------------------
# Embedder
# ---------------------------------------------------------------------------


def _vector_row(mock_embedder, id, content, kind="method", file_path="src/a.py", language="python"):
    return {
        "id": id,
        "content": content,
        "file_path": file_path,
        "language": language,
        "kind": kind,
        "line_start": 1,
        "line_end": 9,
        "vector": mock_embedder.embed_query(content),
    }


class TestEmbedder:
    """Tests for the query-side embedding wrapper."""

    @staticmethod
    def _loaded(config):
        from code_xref.search.embedder import Embedder

        e = Embedder(config)
        e._model = MagicMock()
        e._model.encode.return_value = MagicMock(tolist=lambda: [[0.1] * config.embedding_dim])
        e._available = True
        return e

    def test_embed_produces_correct_dims(self, mock_embedder, tmp_config):
        """embed_batch output shape is (n, config.embedding_dim)."""
        result = mock_embedder.embed_batch(["method login", "class User"])
        assert len(result) == 2
        assert len(result[0]) == tmp_config.embedding_dim

    def test_symbol_prefix_applied(self, tmp_config):
        """Symbol lookups carry the definition-finding instruction."""
        e = self._loaded(tmp_config)
        e.embed_query("method login")

        passed_texts = e._model.encode.call_args[0][0]
        assert passed_texts[0].startswith("Instruct: Find the definition of a method or class")
        assert passed_texts[0].endswith("method login")

    def test_raw_no_prefix(self, tmp_config):
        from code_xref.search.embedder import QueryKind

        e = self._loaded(tmp_config)
        e.embed_batch(["raw text"], QueryKind.RAW)
        assert e._model.encode.call_args[0][0] == ["raw text"]

    def test_kind_accepts_plain_string(self, tmp_config):
        e = self._loaded(tmp_config)
        e.embed_batch(["save the user"], "code")
        assert e._model.encode.call_args[0][0][0].startswith("Instruct: Find code snippets")

    def test_truncate_dim_respected(self, tmp_path):
        """embedding_dim is passed to SentenceTransformer as truncate_dim."""
        from code_xref.config import Config
        from code_xref.search.embedder import Embedder

        config = Config(base_dir=tmp_path / ".code-xref", embedding_dim=256)
        e = Embedder(config)

        with patch("sentence_transformers.SentenceTransformer") as mock_st:
            mock_st.return_value = MagicMock()
            assert e.load() is True
            _, kwargs = mock_st.call_args
            assert kwargs.get("truncate_dim") == 256

    def test_load_failure_graceful(self, tmp_config):
        """A model that fails to load sets available=False without raising."""
        from code_xref.search.embedder import Embedder

        e = Embedder(tmp_config)
        with patch("sentence_transformers.SentenceTransformer", side_effect=OSError("no model")):
            assert e.load() is False
        assert e.available is False

    def test_embed_without_model_raises(self, tmp_config):
        from code_xref.search.embedder import Embedder

        with pytest.raises(RuntimeError, match="not loaded"):
            Embedder(tmp_config).embed_query("x")


# ---------------------------------------------------------------------------
# LanceStore
# ---------------------------------------------------------------------------


class TestLanceStore:
    """Tests for the chunk-vector table."""

    def test_table_created(self, lance_store):
        assert "code_vec" in set(lance_store._db.table_names())
        assert lance_store.count() == 0

    def test_search_empty_table(self, lance_store, mock_embedder):
        assert lance_store.search(mock_embedder.embed_query("anything")) == []

    def test_add_and_search(self, lance_store, mock_embedder):
        """The stored vector of a row is its own nearest neighbour."""
        rows = [
            _vector_row(mock_embedder, "c1", "def login(user): ..."),
            _vector_row(mock_embedder, "c2", "class Session: ...", kind="class"),
        ]
        assert lance_store.add_vectors(rows) == 2
        hits = lance_store.search(rows[0]["vector"], top_k=1)
        assert len(hits) == 1
        assert hits[0].id in {"c1", "c2"}
        assert hits[0].line_end == 9
        assert -1.0 <= hits[0].similarity <= 1.0

    def test_language_filter(self, lance_store, mock_embedder):
        lance_store.add_vectors(
            [
                _vector_row(mock_embedder, "py", "def save(): ..."),
                _vector_row(mock_embedder, "java", "void save() {}", file_path="A.java", language="java"),
            ]
        )
        hits = lance_store.search(mock_embedder.embed_query("save"), top_k=5, language="java")
        assert [h.id for h in hits] == ["java"]

    def test_delete_file(self, lance_store, mock_embedder):
        lance_store.add_vectors([_vector_row(mock_embedder, "c1", "x", file_path="gone.py")])
        lance_store.delete_file("gone.py")
        assert lance_store.count() == 0

    def test_add_nothing(self, lance_store):
        assert lance_store.add_vectors([]) == 0

    def test_requires_connect(self, tmp_config):
        from code_xref.search.lance_store import LanceStore

        with pytest.raises(RuntimeError, match="not connected"):
            _ = LanceStore(tmp_config).table


# ---------------------------------------------------------------------------
# Vector sync
# ---------------------------------------------------------------------------


class TestReplaceFileVectors:
    def test_replaces_rows_for_one_file(self, lance_store, mock_embedder, make_chunk):
        from code_xref.search.vector_sync import replace_file_vectors

        lance_store.add_vectors(
            [
                _vector_row(mock_embedder, "old", "stale", file_path="src/auth/AuthService.ts"),
                _vector_row(mock_embedder, "keep", "other", file_path="src/other.ts"),
            ]
        )
        chunks = [make_chunk("login"), make_chunk("logout"), make_chunk("blank", content="  ")]

        written = replace_file_vectors(lance_store, "src/auth/AuthService.ts", chunks, mock_embedder)

        assert written == 2
        assert lance_store.count() == 3
        hit_ids = {h.id for h in lance_store.search(mock_embedder.embed_query("x"), top_k=10)}
        assert hit_ids == {"keep", chunks[0].id, chunks[1].id}

    def test_without_embedder_only_deletes(self, lance_store, mock_embedder, make_chunk):
        from code_xref.search.vector_sync import replace_file_vectors

        lance_store.add_vectors([_vector_row(mock_embedder, "old", "stale", file_path="gone.ts")])
        assert replace_file_vectors(lance_store, "gone.ts", [make_chunk("x", file_path="gone.ts")]) == 0
        assert lance_store.count() == 0


# ---------------------------------------------------------------------------
# VectorSimilarity
# ---------------------------------------------------------------------------


class TestVectorSimilarity:
    """Tests for the async similarity facade."""

    @pytest.mark.asyncio
    async def test_embed_and_search(self, mock_embedder, lance_store):
        from code_xref.search.similarity import VectorSimilarity

        lance_store.add_vectors([_vector_row(mock_embedder, "c1", "def login(): ...")])
        similarity = VectorSimilarity(mock_embedder, lance_store)
        vector = await similarity.embed_text("method login")
        hits = await similarity.search_similar(vector, top_k=3)
        assert [h.id for h in hits] == ["c1"]

    @pytest.mark.asyncio
    async def test_unloaded_model_raises(self, tmp_config, lance_store):
        from code_xref.search.embedder import Embedder
        from code_xref.search.similarity import VectorSimilarity

        similarity = VectorSimilarity(Embedder(tmp_config), lance_store)
        with pytest.raises(CollaboratorUnavailableError, match="not loaded"):
            await similarity.embed_text("method login")

    @pytest.mark.asyncio
    async def test_search_failure_wrapped(self, mock_embedder):
        from code_xref.search.similarity import VectorSimilarity

        broken = MagicMock()
        broken.search.side_effect = OSError("lance offline")
        similarity = VectorSimilarity(mock_embedder, broken)
        with pytest.raises(CollaboratorUnavailableError, match="lance offline"):
            await similarity.search_similar([0.0] * 4)
