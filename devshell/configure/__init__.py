# SPDX-License-Identifier: MIT
"""Loading of the devshell.toml project declaration."""
