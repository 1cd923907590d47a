import pytest

from moisturechart.plotting import PointListHandle
from moisturechart.registry import SeriesRegistry
from moisturechart.window import DataPoint, NonMonotonicTimestampError, WindowBuffer

WINDOW = 120_000


def assert_in_sync(registry, name):
    entry = registry.ensure_series(name)
    assert entry.handle.points() == entry.buffer.points()


class TestEnsureSeries:

    def test_creates_entry_on_first_sight(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        entry = registry.ensure_series("A")

        assert isinstance(entry.buffer, WindowBuffer)
        assert isinstance(entry.handle, PointListHandle)
        assert entry.handle.name == "A"
        assert len(entry.buffer) == 0
        assert "A" in registry

    def test_is_idempotent(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        first = registry.ensure_series("A")
        second = registry.ensure_series("A")

        assert first.buffer is second.buffer
        assert first.handle is second.handle
        assert len(handle_factory.created) == 1
        assert len(registry) == 1

    def test_empty_name_is_a_valid_key(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        registry.insert("", 1000, 1.0)

        assert registry.get("") is not None
        assert registry.names() == [""]

    def test_buffers_use_registry_settings(self):
        registry = SeriesRegistry(window_ms=5000, ordering="sorted")
        buffer = registry.ensure_series("A").buffer

        assert buffer.window_ms == 5000
        assert buffer.ordering.value == "sorted"
        assert buffer.name == "A"

    def test_default_factory_makes_point_list_handles(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        assert isinstance(registry.ensure_series("A").handle, PointListHandle)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            SeriesRegistry(window_ms=0)


class TestGet:

    def test_unknown_series_is_none(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        assert registry.get("never-seen") is None

    def test_get_does_not_create(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        registry.get("A")

        assert "A" not in registry
        assert handle_factory.created == []


class TestInsert:

    def test_first_insert_creates_one_series(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        registry.insert("A", 0, 10.0)
        registry.insert("A", 1000, 11.0)

        assert len(handle_factory.created) == 1
        assert registry.get("A").points() == [DataPoint(0, 10.0), DataPoint(1000, 11.0)]

    def test_handle_mirrors_tail_appends(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        for t in (0, 10_000, 20_000):
            registry.insert("A", t, float(t))
            assert_in_sync(registry, "A")

    def test_handle_mirrors_evictions(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.insert("A", 0, 10.0)
        registry.insert("A", 60_000, 12.0)
        registry.insert("A", 130_000, 15.0)

        handle = registry.ensure_series("A").handle
        assert handle.points() == [DataPoint(60_000, 12.0), DataPoint(130_000, 15.0)]
        assert_in_sync(registry, "A")

    def test_handle_mirrors_sorted_inserts(self):
        registry = SeriesRegistry(window_ms=WINDOW, ordering="sorted")
        for t in (1000, 5000, 3000, 200_000, 90_000):
            registry.insert("A", t, 1.0)
            assert_in_sync(registry, "A")

        assert [p.timestamp for p in registry.get("A").points()] == [90_000, 200_000]

    def test_rejected_insert_leaves_handle_untouched(self):
        registry = SeriesRegistry(window_ms=WINDOW, ordering="reject")
        registry.insert("A", 5000, 1.0)

        with pytest.raises(NonMonotonicTimestampError):
            registry.insert("A", 1000, 2.0)
        assert_in_sync(registry, "A")
        assert len(registry.get("A")) == 1

    def test_series_are_independent(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.insert("A", 0, 1.0)
        registry.insert("B", 500_000, 2.0)

        assert registry.get("A").points() == [DataPoint(0, 1.0)]
        assert registry.get("B").points() == [DataPoint(500_000, 2.0)]

    def test_stale_series_keeps_its_window(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.insert("A", 0, 1.0)
        registry.insert("A", 1000, 2.0)
        registry.insert("B", 10 * WINDOW, 3.0)

        assert len(registry.get("A")) == 2


class TestClearAll:

    def test_empties_buffers_and_handles(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.insert("A", 1000, 1.0)
        registry.insert("B", 2000, 2.0)
        registry.clear_all()

        for name in ("A", "B"):
            entry = registry.ensure_series(name)
            assert entry.buffer.points() == []
            assert entry.handle.points() == []

    def test_preserves_registration_and_identity(self, handle_factory):
        registry = SeriesRegistry(handle_factory, window_ms=WINDOW)
        registry.insert("A", 1000, 1.0)
        before = registry.ensure_series("A")
        registry.clear_all()
        registry.insert("A", 2000, 2.0)
        after = registry.ensure_series("A")

        assert registry.names() == ["A"]
        assert after.buffer is before.buffer
        assert after.handle is before.handle
        assert len(handle_factory.created) == 1
        assert_in_sync(registry, "A")

    def test_clear_on_empty_registry(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.clear_all()
        assert len(registry) == 0


class TestInspection:

    def test_names_in_registration_order(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        for name in ("C", "A", "B"):
            registry.insert(name, 0, 1.0)
        assert registry.names() == ["C", "A", "B"]

    def test_items_yields_copies(self):
        registry = SeriesRegistry(window_ms=WINDOW)
        registry.insert("A", 0, 1.0)
        items = dict(registry.items())
        items["A"].clear()

        assert len(registry.get("A")) == 1
