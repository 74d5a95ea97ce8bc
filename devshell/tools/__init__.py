# SPDX-License-Identifier: MIT
"""Toolchain protocol and tool descriptions."""
