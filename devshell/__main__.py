# SPDX-License-Identifier: MIT
"""Allow running devshell as ``python -m devshell``."""

import sys

from devshell.cli import main

sys.exit(main())
