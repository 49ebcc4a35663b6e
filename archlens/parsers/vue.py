"""
Vue single-file component parser for archlens.

Script blocks go through the TypeScript extractors; the template is
scanned for custom component tags.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from archlens.models import ApiCallInfo, ExportInfo, StateInfo
from archlens.parsers.base import ParserRegistry
from archlens.parsers.lexer import strip_comments
from archlens.parsers.typescript import TypeScriptParser
from archlens.utils import dedupe, file_stem, to_pascal_case

if TYPE_CHECKING:
    from archlens.models import ParsedModule
    from archlens.resolver import ImportResolver

logger = logging.getLogger(__name__)

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>(.*?)</script>", re.S)
_TEMPLATE_BLOCK = re.compile(r"<template\b[^>]*>(.*)</template>", re.S)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.S)
_PASCAL_TAG = re.compile(r"<([A-Z][A-Za-z0-9]*(?:\.[A-Za-z0-9]+)*)")
_KEBAB_TAG = re.compile(r"<([a-z][a-z0-9]*(?:-[a-z0-9]+)+)")
_VUE_STATE = re.compile(r"(?:const|let)\s+([\w$]+)\s*=\s*(?:ref|reactive|shallowRef|computed)\s*(?:<[^()\n]*>)?\s*\(")
_VUE_FETCH = re.compile(r"""(?:\$fetch|useFetch|useLazyFetch)\s*(?:<[^()\n]*>)?\s*\(\s*([`'"])(/api/[^`'"]*)\1""")
_VUE_FETCH_METHOD = re.compile(r"""method\s*:\s*[`'"](\w+)[`'"]""")
_VUE_LIFECYCLE = re.compile(r"(?<![\w$.])(onMounted|onUnmounted|onBeforeUnmount|watch|watchEffect)\s*\(")
_RUNTIME_CONFIG = re.compile(r"useRuntimeConfig\(\)\.(?:public\.)?([\w$]+)")


@ParserRegistry.register("vue", [".vue"])
class VueParser(TypeScriptParser):
    """
    Vue SFC parser.

    Nuxt renders components on the server by default, so Vue modules are
    never client-marked. Every SFC gets a synthetic default export named
    after its file.
    """

    def parse(
        self,
        content: str,
        rel_path: str,
        resolver: ImportResolver | None = None,
    ) -> ParsedModule:
        script = "\n".join(m.group(1) for m in _SCRIPT_BLOCK.finditer(content))
        text = strip_comments(script, rel_path) if script else ""

        facts = self.extract(text, rel_path, resolver, jsx=False)
        facts["client_marked"] = False

        facts["state"] = facts["state"] + tuple(
            StateInfo(m.group(1)) for m in _VUE_STATE.finditer(text)
        )
        facts["api_calls"] = facts["api_calls"] + tuple(self._vue_fetches(text))
        facts["env_vars"] = dedupe(
            facts["env_vars"] + tuple(m.group(1) for m in _RUNTIME_CONFIG.finditer(text))
        )
        facts["side_effects"] = dedupe(
            facts["side_effects"] + tuple(m.group(1) for m in _VUE_LIFECYCLE.finditer(text))
        )
        facts["elements"] = self.extract_template_elements(content)

        if script.strip():
            name = to_pascal_case(file_stem(rel_path))
            if not any(e.kind == "default" for e in facts["exports"]):
                facts["exports"] = facts["exports"] + (ExportInfo(name, "default"),)

        return self._build(content, rel_path, facts)

    @staticmethod
    def _vue_fetches(text: str) -> list[ApiCallInfo]:
        calls = []
        for m in _VUE_FETCH.finditer(text):
            window = text[m.end():m.end() + 300]
            option = _VUE_FETCH_METHOD.search(window.split(")", 1)[0])
            calls.append(ApiCallInfo(m.group(2), option.group(1).upper() if option else "GET"))
        return calls

    @staticmethod
    def extract_template_elements(content: str) -> tuple[str, ...]:
        """Custom component tags in the template, kebab-case converted to PascalCase."""
        without_scripts = _SCRIPT_BLOCK.sub("", content)
        template = _TEMPLATE_BLOCK.search(without_scripts)
        if not template:
            return ()
        body = _HTML_COMMENT.sub("", template.group(1))
        found = [(m.start(), m.group(1)) for m in _PASCAL_TAG.finditer(body)]
        found += [(m.start(), to_pascal_case(m.group(1))) for m in _KEBAB_TAG.finditer(body)]
        return dedupe(name for _, name in sorted(found))
