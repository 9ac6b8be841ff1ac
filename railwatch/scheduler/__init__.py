"""Polling for railwatch.

Submodules:
    timer  -- PollTimer, an interval timer that skips overlapping ticks.
    views  -- LogView and LogViewRegistry (one view per panel).
    poller -- PollScheduler, the tree timer plus log refresh control.
"""

from railwatch.scheduler.poller import PollScheduler
from railwatch.scheduler.timer import PollTimer
from railwatch.scheduler.views import DEFAULT_PANEL, LogView, LogViewRegistry

__all__ = ["DEFAULT_PANEL", "LogView", "LogViewRegistry", "PollScheduler", "PollTimer"]
