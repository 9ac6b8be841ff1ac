"""Entry point for `python -m railwatch`.

Usage:
    python -m railwatch
    RAILWATCH_API_TOKEN=... python -m railwatch
"""

from __future__ import annotations

import asyncio

from railwatch.app import main

asyncio.run(main())
