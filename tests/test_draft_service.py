"""
Tests for the draft lifecycle: image cap, image removal and publish/cancel.
"""

import pytest

from conftest import make_product
from models.product import MAX_IMAGES_PER_PRODUCT
from services.draft_service import DraftLifecycle, DraftState, clamp_image_index


def images(count, prefix="img"):
    return [f"https://x/{prefix}{i}.jpg" for i in range(count)]


@pytest.fixture
def draft():
    lifecycle = DraftLifecycle()
    lifecycle.start(make_product("d1", images=images(3)))
    return lifecycle


class TestDraftStates:
    def test_starts_empty(self):
        assert DraftLifecycle().state == DraftState.EMPTY

    def test_start_makes_pending(self, draft):
        assert draft.state == DraftState.PENDING
        assert draft.product.id == "d1"

    def test_second_start_rejected(self, draft):
        with pytest.raises(ValueError):
            draft.start(make_product("d2"))

    def test_cancel_discards(self, draft, catalog, blob_store):
        draft.cancel()

        assert draft.state == DraftState.EMPTY
        assert len(catalog) == 0
        assert blob_store.writes == 0

    def test_publish_moves_draft_to_catalog(self, draft, catalog):
        catalog.publish(make_product("old"))

        published = draft.publish_to(catalog)

        assert published.id == "d1"
        assert catalog.ids() == ["d1", "old"]
        assert draft.state == DraftState.EMPTY

    def test_publish_without_draft_is_noop(self, catalog):
        assert DraftLifecycle().publish_to(catalog) is None
        assert len(catalog) == 0


class TestAddImages:
    def test_appends_in_order(self, draft):
        added = draft.add_images(["https://new/a.jpg", "https://new/b.jpg"])

        assert added == 2
        assert draft.product.images[-2:] == ["https://new/a.jpg", "https://new/b.jpg"]

    def test_nine_plus_three_keeps_only_first(self):
        lifecycle = DraftLifecycle()
        lifecycle.start(make_product("d", images=images(9)))

        added = lifecycle.add_images(["a", "b", "c"])

        assert added == 1
        assert len(lifecycle.product.images) == 10
        assert lifecycle.product.images[-1] == "a"

    def test_noop_at_cap(self):
        lifecycle = DraftLifecycle()
        lifecycle.start(make_product("d", images=images(10)))

        assert lifecycle.add_images(["extra"]) == 0
        assert "extra" not in lifecycle.product.images

    @pytest.mark.parametrize("start_count", [0, 1, 5, 9, 10])
    @pytest.mark.parametrize("batches", [[1], [11], [4, 4, 4], [0, 25]])
    def test_never_exceeds_cap(self, start_count, batches):
        lifecycle = DraftLifecycle()
        lifecycle.start(make_product("d", images=images(start_count)))
        for n, size in enumerate(batches):
            lifecycle.add_images(images(size, prefix=f"b{n}_"))
            assert len(lifecycle.product.images) <= MAX_IMAGES_PER_PRODUCT

    def test_without_draft_adds_nothing(self):
        assert DraftLifecycle().add_images(["a"]) == 0


class TestRemoveImage:
    def test_removes_exactly_one(self, draft):
        before = list(draft.product.images)

        assert draft.remove_image_at(1) is True
        assert draft.product.images == [before[0], before[2]]

    def test_single_image_draft_becomes_empty(self):
        lifecycle = DraftLifecycle()
        lifecycle.start(make_product("d", images=["https://only.jpg"]))

        assert lifecycle.remove_image_at(0) is True
        assert lifecycle.product.images == []

    @pytest.mark.parametrize("index", [3, 10, -1])
    def test_out_of_range_is_noop(self, draft, index):
        before = list(draft.product.images)

        assert draft.remove_image_at(index) is False
        assert draft.product.images == before

    def test_remove_from_empty_images(self):
        lifecycle = DraftLifecycle()
        lifecycle.start(make_product("d", images=[]))
        assert lifecycle.remove_image_at(0) is False


class TestClampImageIndex:
    def test_no_images_means_nothing_to_show(self):
        assert clamp_image_index(0, 0) is None

    def test_clamps_to_last(self):
        assert clamp_image_index(5, 3) == 2

    def test_negative_clamps_to_first(self):
        assert clamp_image_index(-2, 3) == 0

    def test_valid_index_unchanged(self):
        assert clamp_image_index(1, 3) == 1
