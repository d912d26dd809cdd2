#!/usr/bin/env python3
"""Headless Uttr, no GUI required.

Usage:
    python cli.py run                        # Hotkeys + SIGUSR2, prints to stdout
    python cli.py run --no-hotkeys           # SIGUSR2 only
    python cli.py transcribe <file.wav>      # Transcribe a WAV file
    python cli.py trigger --pid <pid>        # Toggle a running instance
"""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from core.cli_runtime import run_cli


def main() -> int:
    return run_cli()


if __name__ == "__main__":
    sys.exit(main())
