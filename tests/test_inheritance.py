"""Tests for inheritance tree construction."""

import pytest

from code_xref.xref.analyzer import CrossReferenceAnalyzer
from code_xref.xref.exceptions import NotFoundError


@pytest.fixture
async def hierarchy(chunk_store, tmp_config, make_chunk):
    """Shape -> {Circle, Polygon(abstract)}, Polygon -> Square, plus an interface and enum child."""

    def cls(name, superclass=None, **meta):
        metadata = dict(meta)
        if superclass:
            metadata["superclass"] = superclass
        return make_chunk(name, kind="class", file_path=f"geo/{name}.java", metadata=metadata)

    await chunk_store.store_chunks(
        [
            cls("Shape"),
            cls("Circle", "Shape"),
            cls("Polygon", "Shape", modifiers=["abstract"]),
            cls("Square", "Polygon"),
            cls("Drawable", "Shape", type="interface"),
            cls("ShapeKind", "Shape", type="enum"),
            cls("Unrelated"),
        ]
    )
    return CrossReferenceAnalyzer(chunk_store, tmp_config)


class TestInheritanceTree:
    @pytest.mark.asyncio
    async def test_depth_and_nodes(self, hierarchy):
        """Root with two levels of subclasses has depth 2."""
        tree = await hierarchy.build_inheritance_tree("Shape", include_interfaces=False)
        names = {n.name for n in tree.nodes.values()}
        assert names == {"Shape", "Circle", "Polygon", "Square"}
        assert tree.depth == 2
        assert tree.root.name == "Shape"

    @pytest.mark.asyncio
    async def test_partition(self, hierarchy):
        tree = await hierarchy.build_inheritance_tree("Shape")
        assert tree.interfaces == ["Drawable"]
        assert tree.abstract_classes == ["Polygon"]
        assert set(tree.concrete_classes) == {"Shape", "Circle", "Square"}

    @pytest.mark.asyncio
    async def test_enum_children_never_included(self, hierarchy):
        tree = await hierarchy.build_inheritance_tree("Shape")
        assert "ShapeKind" not in {n.name for n in tree.nodes.values()}

    @pytest.mark.asyncio
    async def test_exclude_abstract_prunes_subtree(self, hierarchy):
        """Skipping an abstract child also skips everything below it."""
        tree = await hierarchy.build_inheritance_tree("Shape", include_abstract=False)
        names = {n.name for n in tree.nodes.values()}
        assert "Polygon" not in names
        assert "Square" not in names
        assert tree.depth == 1

    @pytest.mark.asyncio
    async def test_leaf_has_depth_zero(self, hierarchy):
        tree = await hierarchy.build_inheritance_tree("Unrelated")
        assert list(tree.nodes.values()) == [tree.root]
        assert tree.depth == 0

    @pytest.mark.asyncio
    async def test_case_insensitive_lookup(self, hierarchy):
        tree = await hierarchy.build_inheritance_tree("polygon")
        assert tree.root.name == "Polygon"
        assert tree.depth == 1

    @pytest.mark.asyncio
    async def test_unknown_class_raises(self, hierarchy):
        with pytest.raises(NotFoundError, match="Hexagon"):
            await hierarchy.build_inheritance_tree("Hexagon")

    @pytest.mark.asyncio
    async def test_cyclic_hierarchy_terminates(self, chunk_store, tmp_config, make_chunk):
        """A malformed A <-> B superclass loop is visited once per class."""
        await chunk_store.store_chunks(
            [
                make_chunk("A", kind="class", file_path="A.java", metadata={"superclass": "B"}),
                make_chunk("B", kind="class", file_path="B.java", metadata={"superclass": "A"}),
            ]
        )
        xref = CrossReferenceAnalyzer(chunk_store, tmp_config)
        tree = await xref.build_inheritance_tree("A")
        assert {n.name for n in tree.nodes.values()} == {"A", "B"}
        assert tree.depth == 1

    @pytest.mark.asyncio
    async def test_sample_codebase(self, analyzer):
        tree = await analyzer.build_inheritance_tree("AuthService")
        assert {n.name for n in tree.nodes.values()} == {"AuthService", "AdminAuthService"}
