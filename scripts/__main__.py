"""``python -m scripts`` loads the demo tenant (same as ``python -m scripts.seed``)."""

import asyncio

from scripts.seed import _run_seed

asyncio.run(_run_seed())
