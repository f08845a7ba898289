"""
Entry point for the geohatch service.

Running this script with ``python run.py`` will start the FastAPI
server exposing the hatching API.  The application defined in
``backend/geohatch/main.py`` is imported after adjusting the Python
path to include the repository root.

``HATCH_LOG_LEVEL`` selects the root log level (``INFO`` unless set);
every hatching request is logged at INFO, per-pass detail at DEBUG.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import logging
import uvicorn

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_log_level(name: Optional[str]) -> int:
    """Map a level name such as ``"debug"`` to its ``logging`` constant.

    Unknown or empty names fall back to INFO.
    """
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def main() -> None:
    """Run the Uvicorn server hosting the hatching API."""
    logging.basicConfig(level=resolve_log_level(os.getenv("HATCH_LOG_LEVEL")), format=LOG_FORMAT)

    # Determine the repository root relative to this file and ensure it is on
    # sys.path so that ``backend`` can be imported as a package.
    repo_root = Path(__file__).resolve().parent
    if str(repo_root) not in sys.path:
        sys.path.append(str(repo_root))

    from backend.geohatch.main import app  # type: ignore

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
