"""Entry point for `python -m tagtrail`.

Usage:
    python -m tagtrail
    uv run python -m tagtrail

Configuration is read from TAGTRAIL_* environment variables only; use the
``tagtrail`` console script for command-line flags.
"""

from __future__ import annotations

import asyncio

from tagtrail.app import main

asyncio.run(main())
