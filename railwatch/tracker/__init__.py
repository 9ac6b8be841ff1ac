"""Deployment transition tracking.

Exports:
    TransitionDetector  -- per-deployment last-status map, one event per change.
    classify_transition -- stateless notice policy.
    build_notice        -- policy plus notice text.
"""

from railwatch.tracker.detector import TransitionDetector
from railwatch.tracker.policy import VIEW_LOGS_ACTION, build_notice, classify_transition

__all__ = ["VIEW_LOGS_ACTION", "TransitionDetector", "build_notice", "classify_transition"]
