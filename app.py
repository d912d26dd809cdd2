"""Uttr GUI entry point."""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from ui.app_runtime import run_gui_app


def main() -> int:
    return run_gui_app()


if __name__ == "__main__":
    sys.exit(main())
