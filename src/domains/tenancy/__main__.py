# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Allow running the aligner with ``python -m src.domains.tenancy``."""

import sys

from src.domains.tenancy.cli import main

if __name__ == "__main__":
    sys.exit(main())
