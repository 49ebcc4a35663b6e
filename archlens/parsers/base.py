"""
Parser registry and the base class every source-file parser extends.

A parser registers the file extensions it handles:

    @ParserRegistry.register("svelte", [".svelte"])
    class SvelteParser(BaseParser):
        def parse(self, content, rel_path, resolver=None) -> ParsedModule:
            ...

The scanner asks the registry for the parser of each discovered file.
Parsing runs on a thread pool, so configured instances are shared and
must not keep per-file state.
"""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, ClassVar

from archlens.exceptions import ParseError
from archlens.utils import to_posix

if TYPE_CHECKING:
    from typing import Any, Callable, Type

    from archlens.models import ParsedModule
    from archlens.resolver import ImportResolver

logger = logging.getLogger(__name__)


class ParserRegistry:
    """
    Extension -> parser lookup.

    Instances are created lazily, configured once and cached per config
    object, so every file of a scan shares one parser per language.
    """

    _languages: ClassVar[dict[str, Type["BaseParser"]]] = {}
    _by_extension: ClassVar[dict[str, str]] = {}
    _instances: ClassVar[dict[tuple[str, int], "BaseParser"]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def register(cls, language: str, extensions: list[str]) -> Callable[[Type["BaseParser"]], Type["BaseParser"]]:
        """
        Class decorator registering a parser for some file extensions.

        Args:
            language: Language name stored on ParsedModule.language.
            extensions: Extensions with or without the leading dot.
        """
        def decorator(parser_class: Type["BaseParser"]) -> Type["BaseParser"]:
            parser_class.language = language
            cls._languages[language] = parser_class
            for ext in extensions:
                cls._by_extension["." + ext.lower().lstrip(".")] = language
            logger.debug("Registered %s parser for %s", language, ", ".join(extensions))
            return parser_class
        return decorator

    @classmethod
    def get_parser(
        cls,
        filepath: str | Path,
        config: dict[str, Any] | None = None,
    ) -> tuple["BaseParser" | None, str | None]:
        """
        Look up the configured parser for a file.

        Returns:
            (parser, language), or (None, None) for unsupported extensions.
        """
        language = cls._by_extension.get(PurePosixPath(to_posix(filepath)).suffix.lower())
        if language is None:
            return None, None

        key = (language, id(config) if config else 0)
        with cls._lock:
            parser = cls._instances.get(key)
            if parser is None:
                parser = cls._languages[language]()
                if config:
                    parser.configure(config)
                cls._instances[key] = parser
        return parser, language

    @classmethod
    def list_extensions(cls) -> dict[str, str]:
        """Registered extensions mapped to their language."""
        return dict(cls._by_extension)

    @classmethod
    def clear_cache(cls) -> None:
        """Drop configured instances (configs are keyed by identity)."""
        with cls._lock:
            cls._instances.clear()


class BaseParser(ABC):
    """
    Turns the text of one file into a ParsedModule.

    A parser never executes the file and never reads other files; the
    resolver it is handed is its only view of the rest of the project.
    """

    language: ClassVar[str] = ""

    def __init__(self) -> None:
        self.config: dict[str, Any] = {}

    def configure(self, config: dict[str, Any]) -> None:
        """Store the merged config. Subclasses read their own sections from it."""
        self.config = config

    @abstractmethod
    def parse(
        self,
        content: str,
        rel_path: str,
        resolver: ImportResolver | None = None,
    ) -> ParsedModule:
        """
        Extract structural facts from one file's text.

        Args:
            content: File contents.
            rel_path: Project-relative path (forward slashes), used as module id.
            resolver: Resolves import specifiers; without one nothing is resolved.

        Raises:
            ParseError: If the file is syntactically unusable.
        """

    def parse_file(
        self,
        filepath: Path,
        root: Path,
        resolver: ImportResolver | None = None,
    ) -> ParsedModule:
        """
        Read and parse a file on disk.

        Raises:
            ParseError: If the file can't be read or decoded, or is malformed.
        """
        rel_path = to_posix(filepath.relative_to(root))
        try:
            content = filepath.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(rel_path, f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise ParseError(rel_path, f"could not read file: {e}") from e
        return self.parse(content, rel_path, resolver)


def compile_markers(markers: list[dict[str, Any]]) -> list[tuple[re.Pattern[str], str]]:
    """
    Compile `{regex, name}` marker entries from config.

    Entries with a missing or invalid regex are logged and dropped.
    """
    compiled = []
    for marker in markers:
        regex, name = marker.get("regex"), marker.get("name")
        if not regex or not name:
            continue
        try:
            compiled.append((re.compile(regex), name))
        except re.error as e:
            logger.warning("Invalid marker regex %r: %s", regex, e)
    return compiled
