#!/usr/bin/env python3
"""
Run the asset toolkit from a checkout without installing it.

    python scripts/ikemen_assets_cli.py scan path/to/ikemen/chars
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from ikemen_assets.cli import app


def main():
    app(prog_name="ikemen-assets")


if __name__ == "__main__":
    main()
