"""Tests for interface implementation discovery."""

import pytest

from code_xref.xref.analyzer import CrossReferenceAnalyzer
from code_xref.xref.exceptions import NotFoundError


@pytest.fixture
async def repositories(chunk_store, tmp_config, make_chunk):
    """Repository <- CrudRepository <- {UserRepo, OrderRepo}; CacheRepo implements Repository."""

    def chunk(name, kind="class", **meta):
        return make_chunk(name, kind=kind, file_path=f"repo/{name}.java", metadata=meta)

    await chunk_store.store_chunks(
        [
            chunk("Repository", kind="interface"),
            chunk("CrudRepository", kind="interface", interfaces=["Repository"]),
            chunk("PagingRepository", kind="interface", interfaces=["CrudRepository"]),
            chunk("CacheRepo", interfaces=["Repository"]),
            chunk("UserRepo", interfaces=["CrudRepository"]),
            chunk("OrderRepo", interfaces=["PagingRepository"], modifiers=["abstract"]),
            chunk("Unrelated"),
        ]
    )
    return CrossReferenceAnalyzer(chunk_store, tmp_config)


class TestFindImplementations:
    @pytest.mark.asyncio
    async def test_direct_implementers(self, repositories):
        """Exactly the classes listing the interface in their interfaces."""
        found = await repositories.find_implementations("Repository")
        assert {i.implementation_name for i in found} == {"CrudRepository", "CacheRepo"}
        assert all(i.interface_name == "Repository" for i in found)

    @pytest.mark.asyncio
    async def test_subinterfaces_transitive(self, repositories):
        found = await repositories.find_implementations("Repository", include_subinterfaces=True)
        by_name = {i.implementation_name: i for i in found}
        assert set(by_name) == {
            "CrudRepository",
            "CacheRepo",
            "PagingRepository",
            "UserRepo",
            "OrderRepo",
        }
        assert by_name["UserRepo"].interface_name == "CrudRepository"
        assert by_name["OrderRepo"].is_abstract is True
        assert by_name["CacheRepo"].package == "repo"

    @pytest.mark.asyncio
    async def test_each_implementer_listed_once(self, chunk_store, tmp_config, make_chunk):
        await chunk_store.store_chunks(
            [
                make_chunk("Base", kind="interface", file_path="Base.ts"),
                make_chunk("Child", kind="interface", file_path="Child.ts", metadata={"interfaces": ["Base"]}),
                make_chunk("Impl", kind="class", file_path="Impl.ts", metadata={"interfaces": ["Base", "Child"]}),
            ]
        )
        xref = CrossReferenceAnalyzer(chunk_store, tmp_config)
        found = await xref.find_implementations("Base", include_subinterfaces=True)
        assert [i.implementation_name for i in found] == ["Child", "Impl"]

    @pytest.mark.asyncio
    async def test_case_insensitive_interface_lookup(self, repositories):
        found = await repositories.find_implementations("repository")
        assert len(found) == 2

    @pytest.mark.asyncio
    async def test_implementation_methods(self, analyzer):
        found = await analyzer.find_implementations("IAuthService")
        assert len(found) == 1
        assert [m.name for m in found[0].methods] == ["login", "validateCredentials", "logout"]
        assert found[0].file_path == "src/auth/AuthService.ts"

    @pytest.mark.asyncio
    async def test_non_interface_raises(self, repositories):
        with pytest.raises(NotFoundError, match="CacheRepo"):
            await repositories.find_implementations("CacheRepo")

    @pytest.mark.asyncio
    async def test_unknown_interface_raises(self, repositories):
        with pytest.raises(NotFoundError):
            await repositories.find_implementations("Nope")
