"""Module entry point to run the simulator via ``python -m tripsim``."""
from __future__ import annotations

from .main import main


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
