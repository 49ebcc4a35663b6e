"""
Source-file parsers for archlens.

Each parser turns one file's text into a ParsedModule.
Custom parsers can be added by inheriting from BaseParser.
"""

from archlens.parsers.base import BaseParser, ParserRegistry
from archlens.parsers.roles import ROLE_RULES, classify_roles, primary_kind
from archlens.parsers.typescript import TypeScriptParser
from archlens.parsers.vue import VueParser

__all__ = [
    "BaseParser",
    "ParserRegistry",
    "ROLE_RULES",
    "classify_roles",
    "primary_kind",
    "TypeScriptParser",
    "VueParser",
]
