# vantera_ingest/main.py
from __future__ import annotations

import logging

from .entrypoints.fastapi_app import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
