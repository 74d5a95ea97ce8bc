# SPDX-License-Identifier: MIT
"""Dependency resolvers (Nix, host prefixes, explicit tables)."""

from devshell.resolvers.base import Resolver
from devshell.resolvers.nix import NixResolver
from devshell.resolvers.prefix import PrefixResolver
from devshell.resolvers.table import TableResolver

__all__ = [
    "NixResolver",
    "PrefixResolver",
    "Resolver",
    "TableResolver",
]
