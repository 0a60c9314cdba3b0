# tests/unit/test_cache.py
"""
Tests for SchemaCache.

A cache hit must be indistinguishable from a fresh derivation, including
when many threads derive from the same builder at once.
"""

from concurrent.futures import ThreadPoolExecutor

from magnet_schema.builder import SchemaBuilder
from magnet_schema.cache import SchemaCache
from magnet_schema.config.schema import DeriveConfig
from magnet_schema.shapes import (
    I32,
    STRING,
    ArrayShape,
    EnumShape,
    Field,
    MapShape,
    OptionalShape,
    PrimitiveKind,
    StructShape,
    Variant,
)


def _catalog():
    """A graph with shared nested types and a recursive category tree."""
    price = StructShape("Price", [Field("amount", I32), Field("currency", STRING)])
    category = StructShape("Category")
    category.fields.append(Field("name", STRING))
    category.fields.append(Field("parent", OptionalShape(category)))
    product = StructShape(
        "Product",
        [
            Field("price", price),
            Field("sale_price", OptionalShape(price)),
            Field("category", category),
            Field("related", ArrayShape(category)),
            Field("prices_by_region", MapShape(PrimitiveKind.STRING, price)),
        ],
    )
    status = EnumShape("Status", [Variant.unit("Draft"), Variant.newtype("Live", product)])
    return StructShape("Listing", [Field("product", product), Field("status", status)])


class TestSchemaCache:
    def test_put_and_get(self):
        cache = SchemaCache()
        shape = StructShape("S")
        cache.put(shape, {"type": "object"}, frozenset({id(shape)}))

        entry = cache.get(shape, set())
        assert entry.schema == {"type": "object"}
        assert cache.hits == 1
        assert len(cache) == 1

    def test_miss_for_unknown_shape(self):
        cache = SchemaCache()
        assert cache.get(StructShape("S"), set()) is None
        assert cache.misses == 1

    def test_miss_when_visited_overlaps_active(self):
        """An entry that saw an active identity would hide a cycle cut."""
        cache = SchemaCache()
        shape = StructShape("S")
        other = StructShape("T")
        cache.put(shape, {"type": "object"}, frozenset({id(shape), id(other)}))

        assert cache.get(shape, {id(other)}) is None
        assert cache.get(shape, {12345}) is not None

    def test_hits_are_private_copies(self):
        cache = SchemaCache()
        shape = StructShape("S")
        cache.put(shape, {"properties": {"a": {"type": "string"}}}, frozenset())

        cache.get(shape, set()).schema["properties"]["a"]["type"] = "mutated"
        assert cache.get(shape, set()).schema["properties"]["a"] == {"type": "string"}

    def test_put_stores_a_copy(self):
        cache = SchemaCache()
        shape = StructShape("S")
        doc = {"type": "object"}
        cache.put(shape, doc, frozenset())
        doc["type"] = "mutated"
        assert cache.get(shape, set()).schema == {"type": "object"}

    def test_clear(self):
        cache = SchemaCache()
        shape = StructShape("S")
        cache.put(shape, {}, frozenset())
        cache.get(shape, set())
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == 0


class TestCachedDerivation:
    def test_builder_owns_a_cache(self):
        assert isinstance(SchemaBuilder().cache, SchemaCache)
        assert SchemaBuilder(DeriveConfig(cache_enabled=False)).cache is None

    def test_repeated_types_hit_the_cache(self):
        builder = SchemaBuilder()
        builder.build(_catalog())
        assert builder.cache.hits > 0

    def test_cached_equals_uncached(self):
        cached = SchemaBuilder()
        uncached = SchemaBuilder(DeriveConfig(cache_enabled=False))
        listing = _catalog()

        first = cached.build(listing)
        second = cached.build(listing)
        assert first == second == uncached.build(listing)

    def test_nested_shape_after_parent_matches_fresh(self):
        """A child first built inside a cycle is not served from a tainted entry."""
        cached = SchemaBuilder()
        uncached = SchemaBuilder(DeriveConfig(cache_enabled=False))
        listing = _catalog()
        cached.build(listing)

        category = listing.fields[0].shape.fields[2].shape
        assert cached.build(category) == uncached.build(category)

    def test_concurrent_builds(self):
        """Threads sharing one builder all get the uncached result."""
        builder = SchemaBuilder()
        listing = _catalog()
        expected = SchemaBuilder(DeriveConfig(cache_enabled=False)).build(listing)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: builder.build(listing), range(64)))

        assert all(result == expected for result in results)

    def test_shared_cache_across_builders(self):
        cache = SchemaCache()
        listing = _catalog()
        first = SchemaBuilder(cache=cache).build(listing)
        second = SchemaBuilder(cache=cache).build(listing)
        assert first == second
        assert cache.hits > 0
