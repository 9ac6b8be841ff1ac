"""Host bridge API for railwatch.

Exposes:
    create_app -- FastAPI application factory.
    EventFeed  -- HostListener that buffers outbound events for the bridge.
"""

from railwatch.api.app import create_app
from railwatch.api.feed import EventFeed

__all__ = ["EventFeed", "create_app"]
