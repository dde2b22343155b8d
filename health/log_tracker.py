# ============================================================================
# LOG ANOMALY TRACKER
# ============================================================================
# EPOCH: 1 - HEALTH AGGREGATION
# STATUS: Infrastructure - Log stream health probe
# PURPOSE: Detect configured anomaly patterns in the application log
# CREATED: 19 OCT 2026
# ============================================================================
"""
Log Anomaly Tracker

Watches the log event stream for messages matching configured patterns
(for example out-of-memory errors) and remembers which patterns fired.

Severity filtering uses syslog numbers, where lower means more severe:

    CRITICAL=2  ERROR=3  WARNING=4  INFO=6  DEBUG=7

The configured level is a floor of verbosity: an event is considered
only if its syslog number is <= the floor. The default floor (DEBUG)
admits every event; ALL admits even custom levels below DEBUG.

Patterns are compiled with re.DOTALL and must match the whole message,
so a pattern may span a multi-line message or traceback.

Findings are the distinct pattern strings that matched since the last
reset, in the order they first matched.

Usage:
    tracker = LogAnomalyTracker(patterns=[r".*OutOfMemoryError.*"])
    tracker.subscribe()            # attach to the root logger
    ...
    findings = tracker.snapshot(reset=True)
"""

import logging
import re
import sys
import threading
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

CRITICAL_INT = 2
ERROR_INT = 3
WARN_INT = 4
INFO_INT = 6
DEBUG_INT = 7
ALL_INT = 100

DEFAULT_LOG_LEVEL = "DEBUG"
DEFAULT_LOG_PATTERN = r".*MemoryError.*"

# Records carrying this attribute are produced by the health report itself
HEALTH_REPORT_MARKER = "_health_report"

_LEVEL_FLOORS = {
    "error": ERROR_INT,
    "warn": WARN_INT,
    "warning": WARN_INT,
    "info": INFO_INT,
    "debug": DEBUG_INT,
    "all": ALL_INT,
}


def level_floor(level_name: Optional[str]) -> int:
    """Syslog floor for a configured level name; unknown names admit everything."""
    if level_name is None:
        return sys.maxsize
    return _LEVEL_FLOORS.get(level_name.strip().lower(), sys.maxsize)


def syslog_severity(levelno: int) -> int:
    """Map a Python logging level number to its syslog equivalent."""
    if levelno >= logging.CRITICAL:
        return CRITICAL_INT
    if levelno >= logging.ERROR:
        return ERROR_INT
    if levelno >= logging.WARNING:
        return WARN_INT
    if levelno >= logging.INFO:
        return INFO_INT
    if levelno >= logging.DEBUG:
        return DEBUG_INT
    return ALL_INT


def compile_patterns(sources: Iterable[str]) -> List[Pattern]:
    """
    Compile anomaly patterns in DOTALL mode.

    Malformed patterns are logged and skipped. The default pattern is
    installed only when no valid pattern remains.
    """
    patterns: List[Pattern] = []
    for source in sources or ():
        try:
            patterns.append(re.compile(source, re.DOTALL))
        except re.error as e:
            logger.warning(f"Log pattern fails: {source!r} ({e})")

    if not patterns:
        patterns.append(re.compile(DEFAULT_LOG_PATTERN, re.DOTALL))
    return patterns


class LogAnomalyTracker:
    """
    Accumulates distinct pattern findings from log events.

    ingest() may be called from any thread. Matching rules are swapped
    as one tuple on configure(), so an event is always matched against
    a consistent level/pattern pair.
    """

    def __init__(
        self,
        patterns: Iterable[str] = (),
        level: Optional[str] = DEFAULT_LOG_LEVEL,
    ):
        self._findings: Dict[str, None] = {}
        self._lock = threading.Lock()
        self._rules: Tuple[int, Tuple[Pattern, ...]] = (sys.maxsize, ())
        self._handler: Optional[LogTrackerHandler] = None
        self._subscribed_to: Optional[logging.Logger] = None
        self.configure(patterns, level)

    def configure(self, patterns: Iterable[str] = (), level: Optional[str] = DEFAULT_LOG_LEVEL) -> None:
        """Install new matching rules. Existing findings are kept."""
        self._rules = (level_floor(level), tuple(compile_patterns(patterns)))

    @property
    def patterns(self) -> List[str]:
        return [p.pattern for p in self._rules[1]]

    @property
    def floor(self) -> int:
        return self._rules[0]

    # =========================================================================
    # INGESTION
    # =========================================================================

    def ingest(self, severity: int, message: str) -> None:
        """
        Match one log event.

        Args:
            severity: Syslog severity number of the event
            message: Full message text
        """
        try:
            floor, patterns = self._rules
            if severity > floor or message is None:
                return
            for pattern in patterns:
                if pattern.fullmatch(message):
                    with self._lock:
                        self._findings.setdefault(pattern.pattern, None)
        except Exception:
            # Never disturb the logging pipeline
            return

    def ingest_record(self, record: logging.LogRecord) -> None:
        """Match a Python log record, including any attached traceback."""
        try:
            message = record.getMessage()
            if record.exc_info:
                message = f"{message}\n{_EXC_FORMATTER.formatException(record.exc_info)}"
            elif record.exc_text:
                message = f"{message}\n{record.exc_text}"
            severity = syslog_severity(record.levelno)
        except Exception:
            return
        self.ingest(severity, message)

    # =========================================================================
    # FINDINGS
    # =========================================================================

    @property
    def findings(self) -> List[str]:
        with self._lock:
            return list(self._findings)

    def snapshot(self, reset: bool = False) -> List[str]:
        """
        Read the findings, optionally clearing them.

        Read and clear happen under one lock: a finding added after the
        snapshot stays for the next report.
        """
        with self._lock:
            findings = list(self._findings)
            if reset:
                self._findings.clear()
        return findings

    def clear(self) -> None:
        with self._lock:
            self._findings.clear()

    # =========================================================================
    # SUBSCRIPTION
    # =========================================================================

    @property
    def subscribed(self) -> bool:
        return self._handler is not None

    def subscribe(self, target: Optional[logging.Logger] = None) -> None:
        """Attach to a logger (root by default). No-op if already attached."""
        if self._handler is not None:
            return
        target = target or logging.getLogger()
        self._handler = LogTrackerHandler(self)
        self._subscribed_to = target
        target.addHandler(self._handler)
        logger.info(f"Log anomaly tracker subscribed ({len(self.patterns)} patterns)")

    def unsubscribe(self) -> None:
        """Detach from the logger. No-op if not attached."""
        if self._handler is None:
            return
        self._subscribed_to.removeHandler(self._handler)
        self._handler = None
        self._subscribed_to = None
        logger.info("Log anomaly tracker unsubscribed")


class LogTrackerHandler(logging.Handler):
    """logging.Handler that feeds every record into a LogAnomalyTracker."""

    def __init__(self, tracker: LogAnomalyTracker, level: int = logging.NOTSET):
        super().__init__(level)
        self.tracker = tracker

    def emit(self, record: logging.LogRecord) -> None:
        if getattr(record, HEALTH_REPORT_MARKER, False):
            return
        self.tracker.ingest_record(record)


_EXC_FORMATTER = logging.Formatter()


__all__ = [
    "DEFAULT_LOG_PATTERN",
    "HEALTH_REPORT_MARKER",
    "LogAnomalyTracker",
    "LogTrackerHandler",
    "compile_patterns",
    "level_floor",
    "syslog_severity",
]
