import json
from pathlib import Path

from notionview.markdown.converter import RenderResult
from notionview.storage.page_cache import PageCache
from notionview.storage.ttl_store import JsonTtlStore
from notionview.utils.logging import NullLogger

DAY = 24 * 60 * 60
START = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entry_is_fresh_until_ttl_elapses(tmp_path: Path) -> None:
    clock = FakeClock()
    writer = JsonTtlStore(tmp_path, DAY, payload_key="data", clock=clock)
    writer.save("key", ["x"])

    clock.now = START + DAY - 1
    assert JsonTtlStore(tmp_path, DAY, payload_key="data", clock=clock).load("key") == (
        int(START * 1000),
        ["x"],
    )

    clock.now = START + DAY + 1
    assert JsonTtlStore(tmp_path, DAY, payload_key="data", clock=clock).load("key") is None
    assert not (tmp_path / "key.json").exists()


def test_zero_ttl_never_expires(tmp_path: Path) -> None:
    clock = FakeClock()
    store = JsonTtlStore(tmp_path, 0, payload_key="data", clock=clock)
    store.save("key", 1)

    clock.now = START + 365 * DAY

    assert store.load("key") == (int(START * 1000), 1)


def test_corrupt_entries_are_misses_and_removed(tmp_path: Path) -> None:
    logger = NullLogger()
    store = JsonTtlStore(tmp_path, DAY, payload_key="data", clock=FakeClock(), logger=logger)
    (tmp_path / "bad-json.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "no-stamp.json").write_text(json.dumps({"data": []}), encoding="utf-8")
    (tmp_path / "no-data.json").write_text(
        json.dumps({"timestamp": int(START * 1000)}), encoding="utf-8"
    )

    assert store.load("bad-json") is None
    assert store.load("no-stamp") is None
    assert store.load("no-data") is None
    assert list(tmp_path.iterdir()) == []
    assert logger.codes() == ["W004", "W004", "W004"]


def test_missing_entry_is_silent_miss(tmp_path: Path) -> None:
    logger = NullLogger()
    store = JsonTtlStore(tmp_path / "absent", DAY, payload_key="data", logger=logger)

    assert store.load("nothing") is None
    store.clear()
    assert not logger.has_warnings()


def test_saved_file_layout(tmp_path: Path) -> None:
    store = JsonTtlStore(tmp_path / "nested", DAY, payload_key="state", clock=FakeClock())

    store.save("page-1", {"title": "T"})

    document = json.loads((tmp_path / "nested" / "page-1.json").read_text(encoding="utf-8"))
    assert document == {"timestamp": int(START * 1000), "state": {"title": "T"}}


def test_page_cache_hit_slides_the_window(tmp_path: Path) -> None:
    clock = FakeClock()
    cache = PageCache(tmp_path, DAY, clock=clock)
    result = RenderResult(title="Home", kind="page", markdown="# Home\n\n")
    cache.save("AAAA-bbbb", result)

    clock.now = START + DAY - 1
    assert cache.load("aaaabbbb") == result

    clock.now = START + 2 * DAY - 2
    assert cache.load("aaaabbbb") == result

    clock.now = START + 4 * DAY
    assert cache.load("aaaabbbb") is None


def test_page_cache_discards_undecodable_state(tmp_path: Path) -> None:
    logger = NullLogger()
    cache = PageCache(tmp_path, DAY, clock=FakeClock(), logger=logger)
    (tmp_path / "abc.json").write_text(
        json.dumps({"timestamp": int(START * 1000), "state": {"view_kind": "gantt"}}),
        encoding="utf-8",
    )

    assert cache.load("abc") is None
    assert not (tmp_path / "abc.json").exists()
    assert logger.codes() == ["W004"]


def test_page_cache_delete_and_clear(tmp_path: Path) -> None:
    cache = PageCache(tmp_path, DAY, clock=FakeClock())
    result = RenderResult(title="T", kind="page", markdown="")
    cache.save("one", result)
    cache.save("two", result)

    cache.delete("one")
    assert cache.load("one") is None
    assert cache.load("two") == result

    cache.clear()
    assert list(tmp_path.glob("*.json")) == []
