# SPDX-License-Identifier: MIT
"""Core data model and environment assembly."""
