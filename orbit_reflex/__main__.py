from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "ORBIT_REFLEX_LOG_LEVEL"


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    Needed when this file is executed directly as a script
    (``python orbit_reflex/__main__.py``).
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


try:
    # Works when executed as a module: python -m orbit_reflex
    from .app import run  # type: ignore[attr-defined]
except ImportError:
    # Works when executed as a script (VS Code “Run Python File”, absolute path, etc.)
    _ensure_repo_root_on_path()
    from orbit_reflex.app import run  # type: ignore[attr-defined]


def configure_logging() -> None:
    """Configure root logging once, level from ORBIT_REFLEX_LOG_LEVEL."""
    if logging.getLogger().handlers:
        return
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main() -> int:
    """Entry point for running the game from the command line."""
    configure_logging()
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
