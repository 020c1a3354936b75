"""Shared fixtures for all test modules."""

import sqlite3

import pytest

from code_xref.config import Config
from code_xref.logging.logger import EventLogger
from code_xref.storage.chunk_store import ChunkStore
from code_xref.storage.migrations import migrate
from code_xref.storage.models import CodeChunk, VectorHit
from code_xref.xref.analyzer import CrossReferenceAnalyzer
from code_xref.xref.exceptions import CollaboratorUnavailableError


@pytest.fixture
def tmp_config(tmp_path):
    """Config pointing to a temp directory; fresh DB per test."""
    config = Config(base_dir=tmp_path / ".code-xref")
    config.ensure_dirs()
    return config


@pytest.fixture
def db_conn(tmp_config):
    """Sync connection to the migrated chunk database (autocommit)."""
    conn = sqlite3.connect(str(tmp_config.db_path), isolation_level=None)
    migrate(conn)
    yield conn
    conn.close()


@pytest.fixture
def event_logger(tmp_config, db_conn):
    """EventLogger writing to temp dir."""
    return EventLogger(tmp_config.log_dir, db_conn)


@pytest.fixture
async def chunk_store(tmp_config):
    """Connected ChunkStore with migrated DB."""
    store = ChunkStore(tmp_config.storage_path)
    await store.connect()
    yield store
    await store.close()


# -----------------------------------------------------------------------
# Chunk factories and a small sample codebase
# -----------------------------------------------------------------------


@pytest.fixture
def make_chunk():
    """Factory for CodeChunk with an id derived from file and name."""

    def _make(name, kind="method", file_path="src/auth/AuthService.ts", **kwargs):
        kwargs.setdefault("id", f"{file_path}#{kind}:{name}")
        kwargs.setdefault("content", f"{kind} {name}")
        return CodeChunk(name=name, kind=kind, file_path=file_path, **kwargs)

    return _make


@pytest.fixture
def auth_chunks(make_chunk):
    """Auth service, its interface, a user repository, and an admin subclass.

    login -> validateCredentials -> findUser (in UserRepository)
    """
    return [
        make_chunk(
            "AuthService",
            kind="class",
            start_line=1,
            end_line=60,
            metadata={
                "interfaces": ["IAuthService"],
                "imports": ["../users/UserRepository"],
                "fields": [{"name": "repo", "type": "UserRepository"}],
            },
        ),
        make_chunk(
            "login",
            start_line=5,
            end_line=15,
            dependencies=["validateCredentials"],
            metadata={"className": "AuthService", "complexity": 3},
        ),
        make_chunk(
            "validateCredentials",
            start_line=17,
            end_line=30,
            dependencies=["findUser"],
        ),
        make_chunk("logout", start_line=32, end_line=40),
        make_chunk(
            "IAuthService",
            kind="interface",
            file_path="src/auth/IAuthService.ts",
            start_line=1,
            end_line=10,
        ),
        make_chunk(
            "AdminAuthService",
            kind="class",
            file_path="src/auth/AdminAuthService.ts",
            start_line=1,
            end_line=20,
            metadata={"superclass": "AuthService"},
        ),
        make_chunk(
            "UserRepository",
            kind="class",
            file_path="src/users/UserRepository.ts",
            start_line=1,
            end_line=40,
        ),
        make_chunk(
            "findUser",
            file_path="src/users/UserRepository.ts",
            start_line=3,
            end_line=12,
        ),
    ]


@pytest.fixture
async def seeded_store(chunk_store, auth_chunks):
    """ChunkStore holding the sample codebase."""
    await chunk_store.store_chunks(auth_chunks)
    return chunk_store


@pytest.fixture
def analyzer(seeded_store, tmp_config):
    """Analyzer over the sample codebase, no similarity collaborator."""
    return CrossReferenceAnalyzer(seeded_store, tmp_config)


# -----------------------------------------------------------------------
# Similarity fixtures
# -----------------------------------------------------------------------


class FakeSimilarity:
    """In-memory SimilaritySearch returning canned hits."""

    def __init__(self, hits=None, fail=False):
        self.hits = hits or []
        self.fail = fail
        self.queries: list[str] = []
        self.kinds: list[str] = []

    async def embed_text(self, text, kind="symbol"):
        self.queries.append(text)
        self.kinds.append(str(kind))
        if self.fail:
            msg = "model offline"
            raise CollaboratorUnavailableError(msg)
        return [0.0, 1.0]

    async def search_similar(self, vector, top_k=10, language=None):
        return self.hits[:top_k]


@pytest.fixture
def make_hit():
    """Factory for VectorHit."""

    def _make(id, content, kind="method", file_path="src/legacy/Session.java", **kwargs):
        return VectorHit(id=id, content=content, kind=kind, file_path=file_path, **kwargs)

    return _make


@pytest.fixture
def make_similarity():
    """Factory for FakeSimilarity: make_similarity(hits=[...], fail=False)."""
    return FakeSimilarity


@pytest.fixture
def mock_embedder(tmp_config):
    """Embedder with random L2-normalized vectors in place of a real model."""
    import numpy as np

    from code_xref.search.embedder import Embedder

    e = Embedder(tmp_config)
    e._available = True
    e._model = None
    dim = tmp_config.embedding_dim

    def fake_embed_batch(texts, kind="symbol"):
        rng = np.random.default_rng(42)
        vecs = rng.standard_normal((len(texts), dim))
        norms = np.linalg.norm(vecs, axis=1, keepdims=True)
        return (vecs / norms).tolist()

    def fake_embed_query(text, kind="symbol"):
        return fake_embed_batch([text], kind)[0]

    e.embed_batch = fake_embed_batch  # type: ignore[method-assign]
    e.embed_query = fake_embed_query  # type: ignore[method-assign]
    return e


@pytest.fixture
def lance_store(tmp_config):
    """Connected LanceStore in the temp directory."""
    from code_xref.search.lance_store import LanceStore

    store = LanceStore(tmp_config)
    store.connect()
    return store
