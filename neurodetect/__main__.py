from __future__ import annotations

import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Put the repository root (parent of this package) on ``sys.path``.

    Needed when the file is run directly (``python neurodetect/__main__.py``)
    rather than as ``python -m neurodetect``.
    """
    repo_root_str = str(Path(__file__).resolve().parent.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


if __package__:
    from .app import run
else:
    _ensure_repo_root_on_path()
    from neurodetect.app import run


def main() -> int:
    """Entry point for running the waiting-room game from the command line."""
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
