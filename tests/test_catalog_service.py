"""
Tests for the catalog store and its persistence behavior.
"""

import random

import pytest

from conftest import make_product
from services.catalog_service import CatalogStore, catalog_to_dataframe


class TestCatalogStore:
    def test_publish_prepends(self, catalog):
        catalog.publish(make_product("1"))
        catalog.publish(make_product("2"))

        assert catalog.ids() == ["2", "1"]

    def test_every_mutation_persists(self, catalog, blob_store):
        catalog.publish(make_product("1"))
        catalog.publish(make_product("2"))
        catalog.remove("1")

        assert blob_store.writes == 3

    def test_duplicate_id_rejected(self, catalog):
        catalog.publish(make_product("1"))
        with pytest.raises(ValueError):
            catalog.publish(make_product("1"))
        assert len(catalog) == 1

    def test_remove_missing_id_is_silent(self, catalog, blob_store):
        catalog.publish(make_product("1"))

        assert catalog.remove("nope") is False
        assert catalog.ids() == ["1"]
        assert blob_store.writes == 2

    def test_remove_deletes_matching(self, catalog):
        for product_id in ["1", "2", "3"]:
            catalog.publish(make_product(product_id))

        assert catalog.remove("2") is True
        assert catalog.ids() == ["3", "1"]
        assert catalog.get("2") is None

    def test_load_initial_reads_repository(self, repository):
        repository.save([make_product("b"), make_product("a")])

        store = CatalogStore(repository)
        loaded = store.load_initial()

        assert [p.id for p in loaded] == ["b", "a"]
        assert store.ids() == ["b", "a"]

    def test_load_initial_never_raises(self, blob_store, repository):
        blob_store.fail_reads = True
        assert CatalogStore(repository).load_initial() == []

    def test_write_failure_keeps_memory_state(self, catalog, blob_store):
        blob_store.fail_writes = True
        catalog.publish(make_product("1"))

        assert catalog.ids() == ["1"]

    def test_products_snapshot_is_immutable(self, catalog):
        catalog.publish(make_product("1"))
        assert isinstance(catalog.products, tuple)

    @pytest.mark.parametrize("seed", range(5))
    def test_round_trip_after_random_mutations(self, seed, repository):
        rng = random.Random(seed)
        store = CatalogStore(repository)
        store.load_initial()
        next_id = 0
        for _ in range(30):
            if store.ids() and rng.random() < 0.4:
                store.remove(rng.choice(store.ids()))
            else:
                next_id += 1
                store.publish(make_product(str(next_id), images=[f"https://i/{next_id}.jpg"] * rng.randint(0, 10)))

        reloaded = CatalogStore(repository)
        reloaded.load_initial()
        assert reloaded.products == store.products


class TestCatalogToDataframe:
    def test_one_row_per_product(self):
        df = catalog_to_dataframe([make_product("1", phone_number="0600"), make_product("2", images=[])])

        assert list(df['id']) == ["1", "2"]
        assert list(df['Images']) == [1, 0]
        assert list(df['Phone']) == ["0600", ""]

    def test_empty_catalog_keeps_columns(self):
        df = catalog_to_dataframe([])
        assert df.empty
        assert 'Title' in df.columns
