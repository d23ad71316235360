"""Structured collection timelines from G1 and ZGC garbage collector logs."""

__version__ = "1.0.0"

from gc_timeline.parser import (  # noqa: E402
    CollectorType,
    G1GCParser,
    GCEvent,
    GCParser,
    GCTimelineError,
    ParseResult,
    Timestamp,
    UnsupportedCollectorError,
    ZGCParser,
    convert_to_kb,
    create_parser,
    detect_gc_type,
    format_memory_size,
    parse,
    parse_duration_ms,
    parse_timestamp,
    split_lines,
)

__all__ = [
    "CollectorType",
    "G1GCParser",
    "GCEvent",
    "GCParser",
    "GCTimelineError",
    "ParseResult",
    "Timestamp",
    "UnsupportedCollectorError",
    "ZGCParser",
    "__version__",
    "convert_to_kb",
    "create_parser",
    "detect_gc_type",
    "format_memory_size",
    "parse",
    "parse_duration_ms",
    "parse_timestamp",
    "split_lines",
]
