"""Concurrent checksum engine: scheduling, reporting, and run flows."""

from artsum.engine.counters import GenerateCounters, VerifyCounters
from artsum.engine.display import DisplayManager
from artsum.engine.generate import GenerateSummary, generate
from artsum.engine.scheduler import TaskScheduler
from artsum.engine.tasks import VerifyTaskStatus
from artsum.engine.verify import VerifySummary, verify

__all__ = [
    "GenerateCounters",
    "VerifyCounters",
    "DisplayManager",
    "GenerateSummary",
    "generate",
    "TaskScheduler",
    "VerifyTaskStatus",
    "VerifySummary",
    "verify",
]
