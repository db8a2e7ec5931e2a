#!/usr/bin/env python3

"""Compatibility wrapper.

The project is packaged under `src/cf_dns_updater`. This wrapper allows running
`./cf-dns-updater.py` from a fresh checkout without installing it.

Note: This file intentionally tweaks sys.path before importing the package.
"""

import sys
from pathlib import Path


sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from cf_dns_updater.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
