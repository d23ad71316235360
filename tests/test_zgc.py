import pytest

from gc_timeline.parser import ZGCParser


@pytest.fixture
def parser():
    return ZGCParser()


def test_initialization_line_has_no_events(parser):
    result = parser.parse("[2025-10-24T10:39:40.815+0800][info][gc,init] ZGC initialized")
    assert result.collector_type == "ZGC"
    assert result.events == []
    assert result.start_time == "2025-10-24T10:39:40.815"


def test_major_collection(parser):
    result = parser.parse(
        "[2025-10-24T10:39:42.352+0800][info][gc] GC(0) Major Collection (Metadata GC Threshold) "
        "110M(1%)->62M(0%) 0.035s"
    )
    assert len(result.events) == 1
    event = result.events[0]
    assert event.phase == "Major Collection"
    assert event.reason == "Metadata GC Threshold"
    assert event.before_size == 110 * 1024
    assert event.after_size == 62 * 1024
    assert event.duration == 35
    assert event.app_time == 0


def test_minor_collection(parser):
    result = parser.parse(
        "[2025-10-24T10:39:42.352+0800][info][gc] GC(1) Minor Collection (Allocation Rate) "
        "100M(42%)->50M(16%) 0.035s"
    )
    event = result.events[0]
    assert event.phase == "Minor Collection"
    assert event.reason == "Allocation Rate"
    assert event.duration == 35


def test_reason_with_nested_parentheses(parser):
    result = parser.parse(
        "[2025-10-24T10:39:40.816+0800][info][gc] GC(0) Major Collection (System.gc()) 100M(20%)->50M(10%)"
    )
    event = result.events[0]
    assert event.reason == "System.gc()"
    assert event.before_size == 100 * 1024
    assert event.after_size == 50 * 1024
    assert event.duration is None


def test_millisecond_duration_and_missing_gc_id(parser):
    result = parser.parse(
        "[2025-10-24T10:39:43.000+0800][info][gc] Major Collection (Warmup) 2048M(40%)->1024M(20%) 20.123ms"
    )
    event = result.events[0]
    assert event.duration == 20.123
    assert event.after_size == 1024 * 1024


@pytest.mark.parametrize(
    ("line", "after_size"),
    [
        ("[2025-10-24T10:39:42.352+0800][info][gc] GC(0) Major Collection (Test) 1024K(1%)->512K(0%) 0.035s", 512),
        ("[2025-10-24T10:39:42.353+0800][info][gc] GC(1) Major Collection (Test) 100M(1%)->50M(0%) 0.035s", 50 * 1024),
        ("[2025-10-24T10:39:42.354+0800][info][gc] GC(2) Major Collection (Test) 2G(1%)->1G(0%) 0.035s", 1024 * 1024),
    ],
)
def test_memory_units(parser, line, after_size):
    assert parser.parse(line).events[0].after_size == after_size


def test_filters_lines_without_annotated_transition(parser, zgc_log):
    result = parser.parse(zgc_log)

    assert len(result.events) == 2
    major, minor = result.events
    assert major.timestamp == "2025-10-24T10:40:27.096"
    assert major.phase == "Major Collection"
    assert major.app_time == 46279
    assert minor.timestamp == "2025-10-24T10:40:27.098"
    assert minor.phase == "Minor Collection"
    assert minor.duration == 20
    assert minor.before_size == 3072 * 1024
    assert minor.after_size == 1024 * 1024


def test_corrupted_and_unannotated_transitions_are_skipped(parser):
    content = "\n".join(
        [
            "[2025-10-24T10:40:27.095+0800][info][gc] GC(8) Major Collection (System.gc()) INVALID->2048M(20%)",
            "[2025-10-24T10:40:27.096+0800][info][gc] GC(9) Major Collection (System.gc()) 100M->50M 0.015s",
            "Major Collection (System.gc()) 100M(20%)->50M(10%) 0.015s",
            "[2025-10-24T10:40:27.097+0800][info][gc] GC(10) Major Collection (System.gc()) 100M(20%)->50M(10%) 0.015s",
        ]
    )
    result = parser.parse(content)

    assert len(result.events) == 1
    assert result.events[0].timestamp == "2025-10-24T10:40:27.097"
    assert result.events[0].duration == 15


def test_large_log(parser):
    lines = [
        f"[2025-10-24T{i // 60:02d}:{i % 60:02d}:00.000+0800][info][gc] GC({i}) Major Collection "
        f"(System.gc()) {4096 - i}M(40%)->{2048 - i}M(20%) 0.015s"
        for i in range(1000)
    ]
    result = parser.parse("\n".join(lines))

    assert len(result.events) == 1000
    assert result.events[0].before_size == 4096 * 1024
    assert result.events[-1].app_time == 999 * 60 * 1000
