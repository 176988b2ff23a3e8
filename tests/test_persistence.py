from pathlib import Path

import pytest

from src.spoketowork.persistence import database
from src.spoketowork.persistence.cache import RouteCache
from src.spoketowork.persistence.database import route_company_from_rows, route_from_row
from src.spoketowork.persistence.filesystem import FileStorage


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_file_storage_creates_run_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="optimization_test")

    assert run_dir.exists()
    assert run_dir.is_dir()
    assert run_dir.parent == (tmp_path / "outputs").resolve()


def test_file_storage_run_directories_are_unique(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)

    first = storage.make_run_directory()
    second = storage.make_run_directory()

    assert first != second


def test_file_storage_writes_json_and_text(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="optimization_test")

    summary_path = run_dir / "summary.json"
    order_path = run_dir / "order.csv"

    storage.write_json(summary_path, {"hello": "world"})
    storage.write_text(order_path, "a,b\n1,2\n")

    assert summary_path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert order_path.read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_route_cache_returns_value_until_expiry() -> None:
    clock = FakeClock()
    cache: RouteCache[str] = RouteCache(ttl_seconds=60, clock=clock)

    cache.set("route-1", "payload")
    clock.now += 59
    assert cache.get("route-1") == "payload"

    clock.now += 1
    assert cache.get("route-1") is None
    assert len(cache) == 0


def test_route_cache_invalidate_and_clear() -> None:
    cache: RouteCache[int] = RouteCache(ttl_seconds=60, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.stats() == {"entries": 0, "ttl_seconds": 60}


def test_route_cache_disabled_with_zero_ttl() -> None:
    cache: RouteCache[int] = RouteCache(ttl_seconds=0)
    cache.set("a", 1)

    assert cache.get("a") is None


def test_route_from_row_parses_numbers_and_timestamp() -> None:
    route = route_from_row(
        {
            "id": "route-1",
            "name": "Loop",
            "start_latitude": "35.1667",
            "start_longitude": -84.8667,
            "end_latitude": None,
            "is_round_trip": True,
            "last_optimized_at": "2024-05-01T12:00:00Z",
        }
    )

    assert route.start_latitude == 35.1667
    assert route.end_latitude is None
    assert route.is_round_trip is True
    assert route.last_optimized_at is not None
    assert route.last_optimized_at.year == 2024


def test_route_company_from_rows_merges_association_and_company() -> None:
    stop = route_company_from_rows(
        {"id": "rc-1", "route_id": "route-1", "sequence_order": 3, "visit_on_next_ride": True},
        {"id": "co-9", "name": "Bike Shop", "latitude": 35.2, "longitude": None, "source": "shared"},
    )

    assert stop.id == "rc-1"
    assert stop.company_id == "co-9"
    assert stop.sequence_order == 3
    assert stop.source == "shared"
    assert stop.visit_on_next_ride is True
    assert stop.has_coordinates is False


class FakeQuery:
    def __init__(self, log: list, table: str) -> None:
        self.log = log
        self.table = table

    def update(self, values):
        self.log.append((self.table, values))
        return self

    def eq(self, column, value):
        return self

    def execute(self):
        return self


class FakeSupabase:
    def __init__(self) -> None:
        self.log: list = []

    def table(self, name):
        return FakeQuery(self.log, name)


def test_update_route_order_writes_sequence_and_timestamp(monkeypatch) -> None:
    fake = FakeSupabase()
    monkeypatch.setattr(database, "get_supabase_client", lambda: fake)

    updated = database.update_route_order("route-1", ["b", "a"], {"a": 1.234})

    assert updated == 2
    assert fake.log[0] == ("route_companies", {"sequence_order": 0, "distance_from_start_miles": None})
    assert fake.log[1] == ("route_companies", {"sequence_order": 1, "distance_from_start_miles": 1.23})
    assert fake.log[2][0] == "bicycle_routes"
    assert "last_optimized_at" in fake.log[2][1]


def test_update_route_order_requires_supabase(monkeypatch) -> None:
    monkeypatch.setattr(database, "get_supabase_client", lambda: None)

    with pytest.raises(RuntimeError):
        database.update_route_order("route-1", ["a"], {})


def test_route_company_with_nan_coordinates_is_not_located() -> None:
    stop = route_company_from_rows(
        {"id": "rc-2", "route_id": "route-1"},
        {"id": "co-2", "name": "Ghost Co", "latitude": "NaN", "longitude": -84.9},
    )

    assert stop.has_coordinates is False
    assert stop.missing_coordinates is False
