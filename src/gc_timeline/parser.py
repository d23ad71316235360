"""GC log timeline parser.

Turns raw G1 or ZGC log text into an ordered timeline of collection events:
- Collector detection from signature substrings (ZGC checked before G1)
- Absolute (ISO) and relative (uptime) timestamp recognition
- Per-collector event extraction: phase, reason, heap transition, duration
- One stricter-filter retry when a parse produces no events
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Literal, Protocol, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# ============================================================
# TYPE ALIASES
# ============================================================

CollectorType: TypeAlias = Literal["G1", "ZGC", "Unknown"]
KilobytesValue: TypeAlias = int
MillisecondsValue: TypeAlias = float

ABSOLUTE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

# ============================================================
# ERRORS
# ============================================================


class GCTimelineError(Exception):
    """Base class for errors raised by the timeline parser."""


class UnsupportedCollectorError(GCTimelineError, ValueError):
    """Raised when a log carries no recognizable G1 or ZGC content."""


# ============================================================
# PYDANTIC MODELS
# ============================================================


class Timestamp(BaseModel):
    """Timestamp recognized on one log line: absolute or relative, never both."""

    model_config = ConfigDict(frozen=True)

    absolute: str | None = None
    relative: str | None = None

    @model_validator(mode="after")
    def _exactly_one_variant(self) -> Timestamp:
        if (self.absolute is None) == (self.relative is None):
            raise ValueError("Timestamp needs exactly one of 'absolute' or 'relative'")
        return self

    @property
    def is_absolute(self) -> bool:
        return self.absolute is not None

    def to_datetime(self) -> datetime | None:
        """Absolute timestamp as a naive datetime (offset already stripped)."""
        if self.absolute is None:
            return None
        return datetime.strptime(self.absolute, ABSOLUTE_TIMESTAMP_FORMAT)


class GCEvent(BaseModel):
    """One collection event on the timeline."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    timestamp: str = ""
    uptime_seconds: float | None = None
    app_time: MillisecondsValue | None = None
    phase: str
    reason: str | None = None
    duration: MillisecondsValue | None = Field(default=None, ge=0)
    before_size: KilobytesValue | None = Field(default=None, ge=0)
    after_size: KilobytesValue | None = Field(default=None, ge=0)


class ParseResult(BaseModel):
    """Timeline of one parsed log."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    start_time: str | None = None
    collector_type: CollectorType
    events: list[GCEvent] = Field(default_factory=list)


# ============================================================
# UNIT NORMALIZATION
# ============================================================

DURATION_TOKEN: re.Pattern[str] = re.compile(
    r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|secs?|s)\s*$", re.IGNORECASE
)


def convert_to_kb(value: int | str, unit: str) -> KilobytesValue:
    """Convert a JVM size magnitude with a K/M/G unit to KB.

    Unknown units are treated as KB.
    """
    num = int(value)
    unit_upper = unit.upper()
    if unit_upper == "M":
        return num * 1024
    elif unit_upper == "G":
        return num * 1024 * 1024
    return num


def parse_duration_ms(token: str | None) -> MillisecondsValue | None:
    """Parse a duration token like '15.339ms', '0.035s' or '0.0123 secs' into ms."""
    if not token:
        return None
    match = DURATION_TOKEN.match(token)
    if not match:
        return None
    value = Decimal(match.group("value"))
    if match.group("unit").lower() != "ms":
        value *= 1000
    return float(value)


def format_memory_size(size_kb: int) -> str:
    """Format a KB value for display."""
    if size_kb >= 1024 * 1024:
        return f"{size_kb / (1024 * 1024):.2f} GB"
    if size_kb >= 1024:
        return f"{size_kb / 1024:.2f} MB"
    return f"{size_kb} KB"


# ============================================================
# TIMESTAMP RECOGNITION
# ============================================================

_ISO_MILLIS = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}"
_TZ_OFFSET = r"(?:Z|[+-]\d{2}:?\d{2})?"

# Absolute forms are always tried before relative ones
ABSOLUTE_TIMESTAMP_PATTERNS: tuple[re.Pattern[str], ...] = (
    # [2025-10-24T10:40:27.095+0800], [2025-10-24T10:40:27.095], [timestamp: ...]:
    re.compile(rf"\[(?:timestamp:\s*)?(?P<ts>{_ISO_MILLIS}){_TZ_OFFSET}\]:?"),
    # 2017-02-16T11:26:47.922-0800: 67.436: [Full GC ...
    re.compile(rf"^(?P<ts>{_ISO_MILLIS}){_TZ_OFFSET}:?"),
)

RELATIVE_TIMESTAMP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\[(?P<seconds>\d+\.\d+)s\]"),
    re.compile(r"^\[(?P<seconds>\d+\.\d+)\]"),
    re.compile(r"^\[(?P<seconds>\d+)\]"),
)


def parse_timestamp(line: str | None) -> Timestamp | None:
    """Recognize the absolute or relative timestamp of a log line."""
    if not line or not line.strip():
        return None

    for pattern in ABSOLUTE_TIMESTAMP_PATTERNS:
        if match := pattern.search(line):
            candidate = match.group("ts")
            try:
                datetime.strptime(candidate, ABSOLUTE_TIMESTAMP_FORMAT)
            except ValueError:
                # e.g. month 13 or minute 61
                continue
            return Timestamp(absolute=candidate)

    for pattern in RELATIVE_TIMESTAMP_PATTERNS:
        if match := pattern.search(line):
            return Timestamp(relative=f"{float(match.group('seconds')):.3f}")

    return None


LINE_SEPARATOR: re.Pattern[str] = re.compile(r"\r?\n")


def split_lines(content: str) -> list[str]:
    """Split log text on \\n or \\r\\n only."""
    return LINE_SEPARATOR.split(content)


# ============================================================
# COLLECTOR DETECTION
# ============================================================


def _is_zgc_line(line: str) -> bool:
    return (
        "using zgc" in line.lower()
        or "The Z Garbage Collector" in line
        or ("gc,init" in line and "ZGC" in line)
        or "Major Collection" in line
        or "Minor Collection" in line
    )


def _is_g1_line(line: str) -> bool:
    return (
        "using g1" in line.lower()
        or "G1 Young Generation" in line
        or "G1 Mixed Generation" in line
        or "GC pause (G1" in line
    )


def detect_gc_type(log_lines: list[str] | str) -> CollectorType:
    """Detect which collector produced the log.

    ZGC signatures are searched over the whole log before G1 signatures, so a
    log mixing both is reported as ZGC.
    """
    if isinstance(log_lines, str):
        log_lines = split_lines(log_lines)

    if any(_is_zgc_line(line) for line in log_lines):
        return "ZGC"
    if any(_is_g1_line(line) for line in log_lines):
        return "G1"
    return "Unknown"


# ============================================================
# GC PARSER ABSTRACTION
# ============================================================


class GCParser(Protocol):
    """Protocol defining GC parser interface."""

    gc_type_name: CollectorType

    def parse(self, content: str) -> ParseResult:
        """Parse full log text into a timeline."""
        ...


def _app_time_ms(stamp: Timestamp, start: datetime | None) -> MillisecondsValue | None:
    """Milliseconds between the log start and an absolute timestamp."""
    current = stamp.to_datetime()
    if current is None or start is None:
        return None
    return (current - start) // timedelta(microseconds=1) / 1000


class _TimelineBuilder:
    """Per-call working state shared by both collector parsers."""

    def __init__(self) -> None:
        self.start: datetime | None = None
        self.start_text: str | None = None
        self.events: list[GCEvent] = []

    def observe(self, stamp: Timestamp) -> None:
        if self.start is None and stamp.is_absolute:
            self.start = stamp.to_datetime()
            self.start_text = stamp.absolute

    def add(self, stamp: Timestamp, **fields: object) -> None:
        self.events.append(
            GCEvent(
                timestamp=stamp.absolute or "",
                uptime_seconds=float(stamp.relative) if stamp.relative is not None else None,
                app_time=_app_time_ms(stamp, self.start),
                **fields,
            )
        )

    def result(self, collector_type: CollectorType) -> ParseResult:
        return ParseResult(
            start_time=self.start_text, collector_type=collector_type, events=self.events
        )


class G1GCParser:
    """Parser for G1 GC logs (unified logging and legacy pause lines)."""

    gc_type_name: CollectorType = "G1"

    # Mixed is checked first: unified logs label mixed pauses "Pause Young (Mixed)".
    # JDK 8 logs mark the kind after the cause: "GC pause (G1 Evacuation Pause) (young)"
    PHASE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
        (
            "Mixed GC",
            re.compile(r"Mixed Generation|Pause Young \(Mixed\)|G1Mixed|GC pause \(.*?\) \(mixed\)"),
        ),
        ("Young GC", re.compile(r"Young Generation|Pause Young|G1Young|GC pause \(.*?\) \(young\)")),
        ("Full GC", re.compile(r"Full GC|Pause Full")),
    )

    HEAP_TRANSITION: re.Pattern[str] = re.compile(
        r"(?P<before>\d+)(?P<before_unit>[KMG])->(?P<after>\d+)(?P<after_unit>[KMG])",
        re.IGNORECASE,
    )

    DURATION: re.Pattern[str] = re.compile(
        r"(?P<token>\d+(?:\.\d+)?\s?(?:ms|secs?|s))\b", re.IGNORECASE
    )

    # Skips GC ids and capacity annotations such as the "(8192M)" in "4096M->2048M(8192M)"
    REASON: re.Pattern[str] = re.compile(
        r"(?<!GC)(?<!\d[KMGkmg])\((?P<reason>[^()]*(?:\([^()]*\)[^()]*)*)\)"
    )

    def parse(self, content: str) -> ParseResult:
        """Parse G1 log text into a timeline."""
        timeline = _TimelineBuilder()

        for line in split_lines(content):
            stamp = parse_timestamp(line)
            if stamp is None:
                continue
            timeline.observe(stamp)

            phase = self._classify_phase(line)
            if phase is None:
                continue

            transition = self.HEAP_TRANSITION.search(line)
            if transition is None:
                logger.debug("Skipping G1 %s line without heap transition: %s", phase, line)
                continue

            duration = None
            if duration_match := self.DURATION.search(line, transition.end()):
                duration = parse_duration_ms(duration_match.group("token"))

            reason = None
            if reason_match := self.REASON.search(line):
                reason = reason_match.group("reason").strip() or None

            timeline.add(
                stamp,
                phase=phase,
                reason=reason,
                duration=duration,
                before_size=convert_to_kb(
                    transition.group("before"), transition.group("before_unit")
                ),
                after_size=convert_to_kb(transition.group("after"), transition.group("after_unit")),
            )

        return timeline.result(self.gc_type_name)

    def _classify_phase(self, line: str) -> str | None:
        for phase, pattern in self.PHASE_PATTERNS:
            if pattern.search(line):
                return phase
        return None


class ZGCParser:
    """Parser for generational ZGC Major and Minor Collection lines."""

    gc_type_name: CollectorType = "ZGC"

    COLLECTION_PATTERN: re.Pattern[str] = re.compile(
        r"(?:GC\((?P<gc_id>\d+)\)\s+)?"
        r"(?P<phase>Major Collection|Minor Collection)\s*"
        r"(?:\((?P<reason>.*?)\)\s*)?"
        r"(?P<before>\d+)(?P<before_unit>[KMG])\s*\(\d+(?:\.\d+)?%\)\s*->\s*"
        r"(?P<after>\d+)(?P<after_unit>[KMG])\s*\(\d+(?:\.\d+)?%\)",
    )

    TRAILING_DURATION: re.Pattern[str] = re.compile(
        r"(?P<token>\d+(?:\.\d+)?\s?(?:ms|s))\s*$", re.IGNORECASE
    )

    def parse(self, content: str) -> ParseResult:
        """Parse ZGC log text into a timeline."""
        timeline = _TimelineBuilder()

        for line in split_lines(content):
            stamp = parse_timestamp(line)
            if stamp is None:
                continue
            timeline.observe(stamp)

            # Substring guard: only run regex on collection summary lines
            if "Major Collection" not in line and "Minor Collection" not in line:
                continue

            match = self.COLLECTION_PATTERN.search(line)
            if match is None:
                logger.debug("Skipping ZGC collection line without heap transition: %s", line)
                continue

            duration = None
            if duration_match := self.TRAILING_DURATION.search(line, match.end()):
                duration = parse_duration_ms(duration_match.group("token"))

            reason = (match.group("reason") or "").strip()
            timeline.add(
                stamp,
                phase=match.group("phase"),
                reason=reason or None,
                duration=duration,
                before_size=convert_to_kb(match.group("before"), match.group("before_unit")),
                after_size=convert_to_kb(match.group("after"), match.group("after_unit")),
            )

        return timeline.result(self.gc_type_name)


# ============================================================
# PARSE PIPELINE
# ============================================================

HEAP_SNAPSHOT_TOKEN: re.Pattern[str] = re.compile(r"\bused=\d+[KMG]\b", re.IGNORECASE)
SIZE_TOKEN: re.Pattern[str] = re.compile(r"\d+[KMG]")


def create_parser(gc_type: CollectorType) -> GCParser:
    """Return the parser for a detected collector type."""
    if gc_type == "ZGC":
        return ZGCParser()
    elif gc_type == "G1":
        return G1GCParser()
    raise UnsupportedCollectorError(f"No parser for collector type: {gc_type}")


def _looks_like_gc_line(line: str) -> bool:
    return "GC pause" in line or "Collection" in line


def parse(content: str) -> ParseResult:
    """Parse a G1 or ZGC log into a timeline of collection events.

    Raises:
        UnsupportedCollectorError: the log has no collector signature and no
            "GC pause"/"Collection" line to attempt a best-effort parse on.
    """
    if HEAP_SNAPSHOT_TOKEN.search(content):
        logger.debug("Heap snapshot content detected, returning empty timeline")
        return ParseResult(collector_type="Unknown")

    lines = split_lines(content)
    gc_type = detect_gc_type(lines)
    logger.debug("Detected GC type: %s", gc_type)

    if gc_type == "Unknown":
        if not any(_looks_like_gc_line(line) for line in lines):
            raise UnsupportedCollectorError(
                "Unsupported or unrecognized GC log format. Supported formats: G1 GC, ZGC"
            )
        logger.debug("No collector signature found, attempting best-effort G1 parse")
        parser: GCParser = G1GCParser()
    else:
        parser = create_parser(gc_type)

    result = parser.parse(content)

    if not result.events:
        gc_lines = [
            line for line in lines if SIZE_TOKEN.search(line) and _looks_like_gc_line(line)
        ]
        logger.debug("No events parsed, retrying on %d filtered lines", len(gc_lines))
        result = parser.parse("\n".join(gc_lines))
        if not result.events:
            logger.info("No %s events found in log", parser.gc_type_name)

    if gc_type == "Unknown":
        return result.model_copy(update={"collector_type": "Unknown"})
    return result
