# SPDX-License-Identifier: MIT
"""Utility helpers for devshell."""
