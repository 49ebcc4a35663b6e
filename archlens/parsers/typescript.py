"""
TypeScript/React regex-based parser for archlens.

Works on comment-stripped source text (see lexer.strip_comments), so
commented-out code never produces facts while string literals such as
import specifiers and fetch paths stay intact.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from archlens.config import DEFAULT_CONFIG
from archlens.models import (
    ApiCallInfo,
    DataAccess,
    ExportInfo,
    ImportInfo,
    ParsedModule,
    StateInfo,
)
from archlens.parsers.base import BaseParser, ParserRegistry, compile_markers
from archlens.parsers.lexer import find_matching, split_top_level, strip_comments
from archlens.parsers.roles import classify_roles
from archlens.utils import count_lines, dedupe

if TYPE_CHECKING:
    from typing import Any

    from archlens.resolver import ImportResolver

logger = logging.getLogger(__name__)


# --- Imports ---

_IMPORT_FROM = re.compile(
    r"""(?m)^[ \t]*import\s+(type\s+)?([^'";]*?)\s*from\s*(['"])([^'"\n]+)\3"""
)
_IMPORT_BARE = re.compile(r"""(?m)^[ \t]*import\s*(['"])([^'"\n]+)\1""")
_REEXPORT = re.compile(
    r"""(?m)^[ \t]*export\s+(type\s+)?(\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*(['"])([^'"\n]+)\3"""
)
_DYNAMIC_IMPORT = re.compile(r"""(?<![\w$.])import\s*\(\s*([`'"])([^`'"\n]+)\1\s*\)""")

# --- Exports ---

_EXPORT_DECL = re.compile(
    r"(?m)^[ \t]*export\s+(?:declare\s+)?"
    r"(async\s+function|function|abstract\s+class|class|const\s+enum|enum|interface|type|const|let|var)"
    r"\b\s*\*?\s*([\w$]+)"
)
_EXPORT_DEFAULT = re.compile(r"(?m)^[ \t]*export\s+default\s+")
_EXPORT_LIST = re.compile(r"(?m)^[ \t]*export\s+(type\s+)?\{([^}]*)\}(?!\s*from\b)")
_DECL_KINDS = {
    "async function": "function",
    "function": "function",
    "abstract class": "class",
    "class": "class",
    "const enum": "enum",
    "enum": "enum",
    "interface": "interface",
    "type": "type",
    "const": "variable",
    "let": "variable",
    "var": "variable",
}

# --- Behaviour ---

_DIRECTIVE = re.compile(r"""\s*(['"])([^'"\n]*)\1\s*;?""")
_HOOK_CALL = re.compile(r"(?:(?<=React\.)|(?<![\w$.]))(use[A-Z][\w$]*)\s*(?:<[^()\n]*>)?\s*\(")
_FUNCTION_BEFORE = re.compile(r"function\s*\*?\s*$")
_STATE_HOOK = re.compile(
    r"(?:const|let|var)\s*\[\s*([\w$]+)[^\]]*\]\s*=\s*(?:React\.)?(useState|useReducer)\s*(?:<[^()\n]*>)?\s*\("
)
_FETCH = re.compile(r"""(?<![\w$])fetch\s*\(\s*([`'"])(/api/[^`'"]*)\1""")
_FETCH_METHOD = re.compile(r"""method\s*:\s*[`'"](\w+)[`'"]""")
_AXIOS = re.compile(
    r"""(?<![\w$])axios\.(get|post|put|patch|delete|head|options)\s*(?:<[^()\n]*>)?\s*\(\s*([`'"])(/api/[^`'"]*)\2"""
)
_ENV_VAR = re.compile(
    r"""process\.env\.([A-Za-z_]\w*)|process\.env\[\s*['"]([^'"]+)['"]\s*\]|import\.meta\.env\.([A-Za-z_]\w*)"""
)
_LIFECYCLE = re.compile(
    r"(?<![\w$])(useEffect|useLayoutEffect|useInsertionEffect|addEventListener|setInterval|setTimeout)\s*\("
    r"|\.(subscribe)\s*\("
)
DB_OPERATIONS = (
    "findMany", "findFirst", "findFirstOrThrow", "findUnique", "findUniqueOrThrow",
    "create", "createMany", "createManyAndReturn", "update", "updateMany", "upsert",
    "delete", "deleteMany", "count", "aggregate", "groupBy",
)
_JSX_ELEMENT = re.compile(r"(?<![\w$)\]])<([A-Z][\w$]*(?:\.[\w$]+)*)(?=[\s/>])")
_JSX_EXTS = {".tsx", ".jsx"}

# (regex, signal name), reported in this order
SECURITY_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"""['"](?:node:)?child_process['"]"""), "child_process"),
    (re.compile(r"(?<![\w$.])exec(?:Sync)?\s*\("), "exec"),
    (re.compile(r"(?<![\w$.])eval\s*\("), "eval"),
    (re.compile(r"\bnew\s+Function\s*\("), "new Function"),
    (re.compile(r"\.innerHTML\s*=(?!=)"), "innerHTML ="),
    (re.compile(r"\bdangerouslySetInnerHTML\b"), "dangerouslySetInnerHTML"),
    (re.compile(r"\bdocument\.write(?:ln)?\s*\("), "document.write"),
]

DATA_FETCHING_EXPORTS = ("getServerSideProps", "getStaticProps", "getStaticPaths", "getInitialProps")
_GET_INITIAL_PROPS = re.compile(r"\.getInitialProps\s*=")
_I18N = re.compile(r"""\b(?:useTranslations|getTranslations|useTranslation)\s*\(\s*['"]([^'"]+)['"]""")
_SEARCH_PARAM_GET = re.compile(r"""searchParams\??\.get\s*\(\s*['"]([^'"]+)['"]""")
_SEARCH_PARAM_PROP = re.compile(
    r"searchParams\??\.(?!(?:get|getAll|has|set|append|delete|toString|entries|keys|values|forEach|size)\b)([\w$]+)"
)


def parse_import_clause(clause: str) -> tuple[str, ...]:
    """
    Imported names from an import clause.

    `Foo` -> "Foo", `* as ns` -> "* as ns", `{ a as b }` -> "a".
    """
    specifiers: list[str] = []
    brace = re.search(r"\{([^}]*)\}", clause)
    head = clause[:brace.start()] if brace else clause
    for part in head.split(","):
        part = part.strip()
        if not part:
            continue
        ns = re.match(r"\*\s*as\s+([\w$]+)", part)
        if ns:
            specifiers.append(f"* as {ns.group(1)}")
        elif re.fullmatch(r"[\w$]+", part):
            specifiers.append(part)
    if brace:
        specifiers.extend(original for original, _, _ in _named_items(brace.group(1)))
    return tuple(specifiers)


def _named_items(body: str) -> list[tuple[str, str, bool]]:
    """Split `{ a, b as c, type D }` into (original, alias, is_type) triples."""
    items: list[tuple[str, str, bool]] = []
    for part in body.split(","):
        part = part.strip()
        if not part:
            continue
        is_type = False
        if re.match(r"type\s+[\w$]", part):
            is_type = True
            part = part[4:].strip()
        pieces = re.split(r"\s+as\s+", part, maxsplit=1)
        original = pieces[0].strip()
        alias = pieces[1].strip() if len(pieces) > 1 else original
        items.append((original, alias, is_type))
    return items


def _signature(text: str, open_paren: int) -> str | None:
    """Build `(params) => ReturnType` from the parameter list at open_paren."""
    close = find_matching(text, open_paren)
    if close == -1:
        return None
    params = re.sub(r"\s+", " ", text[open_paren + 1:close]).strip().rstrip(",")
    returns = re.match(r"\s*:\s*([^{;=]+?)\s*(?:\{|;|=>|$)", text[close + 1:close + 200])
    return_type = re.sub(r"\s+", " ", returns.group(1)) if returns else "void"
    return f"({params}) => {return_type}"


@ParserRegistry.register("typescript", [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"])
class TypeScriptParser(BaseParser):
    """
    TypeScript/React parser using regex patterns.

    Extracts imports, exports, hooks, state, outbound API calls, env
    vars, side effects, ORM data access, JSX elements, auth markers and
    security signals.
    """

    def __init__(self) -> None:
        """Initialize with default config."""
        super().__init__()
        self.auth_markers: list[tuple[re.Pattern[str], str]] = []
        self.db_pattern: re.Pattern[str] | None = None
        self._apply(DEFAULT_CONFIG)

    def configure(self, config: dict[str, Any]) -> None:
        """
        Configure the parser.

        Args:
            config: Configuration dictionary.
        """
        super().configure(config)
        self._apply(config)
        logger.debug(
            "%s configured: %d auth markers, db pattern %s",
            type(self).__name__,
            len(self.auth_markers),
            self.db_pattern.pattern if self.db_pattern else None,
        )

    def _apply(self, config: dict[str, Any]) -> None:
        auth_config = config.get("auth") or {}
        self.auth_markers = compile_markers(
            list(auth_config.get("route_markers") or []) + list(auth_config.get("page_markers") or [])
        )

        clients = (config.get("data_access") or {}).get("clients") or []
        if clients:
            client_alt = "|".join(re.escape(c) for c in clients)
            ops_alt = "|".join(DB_OPERATIONS)
            self.db_pattern = re.compile(
                rf"(?<![\w$])(?:{client_alt})\.(?:query\.)?([\w$]+)\.({ops_alt})\s*\("
            )
        else:
            self.db_pattern = None

    def parse(
        self,
        content: str,
        rel_path: str,
        resolver: ImportResolver | None = None,
    ) -> ParsedModule:
        """
        Parse a TypeScript/JavaScript file.

        Raises:
            ParseError: If brackets are unbalanced or a literal is unterminated.
        """
        text = strip_comments(content, rel_path)
        facts = self.extract(text, rel_path, resolver, jsx=PurePosixPath(rel_path).suffix in _JSX_EXTS)
        facts["client_marked"] = self._has_client_directive(text)
        return self._build(content, rel_path, facts)

    def _build(self, content: str, rel_path: str, facts: dict[str, Any]) -> ParsedModule:
        exports = facts["exports"]
        return ParsedModule(
            path=rel_path,
            language=self.language,
            line_count=count_lines(content),
            roles=classify_roles(rel_path, exports),
            **facts,
        )

    def extract(
        self,
        text: str,
        rel_path: str,
        resolver: ImportResolver | None,
        jsx: bool,
    ) -> dict[str, Any]:
        """
        Run every extractor over comment-stripped text.

        Returns:
            Keyword arguments for ParsedModule (everything except path,
            language, roles, line_count and client_marked).
        """
        exports = self.extract_exports(text)
        data_access = self.extract_data_access(text)
        side_effects = self.extract_lifecycle(text) + tuple(
            dedupe(access.description for access in data_access)
        )
        return {
            "imports": self.extract_imports(text, rel_path, resolver),
            "exports": exports,
            "hooks": self.extract_hooks(text),
            "state": self.extract_state(text),
            "api_calls": self.extract_api_calls(text),
            "env_vars": self.extract_env_vars(text),
            "side_effects": side_effects,
            "data_access": data_access,
            "elements": self.extract_elements(text) if jsx else (),
            "auth_markers": tuple(name for regex, name in self.auth_markers if regex.search(text)),
            "security_signals": tuple(name for regex, name in SECURITY_PATTERNS if regex.search(text)),
            "data_fetching_method": self._data_fetching_method(text, exports),
            "i18n_namespace": self._i18n_namespace(text),
            "search_params": self.extract_search_params(text),
        }

    # --- Imports / exports ---

    def extract_imports(
        self,
        text: str,
        rel_path: str,
        resolver: ImportResolver | None,
    ) -> tuple[ImportInfo, ...]:
        found: list[tuple[int, str, tuple[str, ...], bool, str]] = []

        for m in _IMPORT_FROM.finditer(text):
            found.append((m.start(), m.group(4), parse_import_clause(m.group(2)), bool(m.group(1)), "static"))
        for m in _IMPORT_BARE.finditer(text):
            found.append((m.start(), m.group(2), (), False, "side-effect"))
        for m in _REEXPORT.finditer(text):
            target = m.group(2)
            if target.startswith("{"):
                specifiers = tuple(original for original, _, _ in _named_items(target[1:-1]))
            else:
                specifiers = ("*",)
            found.append((m.start(), m.group(4), specifiers, bool(m.group(1)), "re-export"))
        for m in _DYNAMIC_IMPORT.finditer(text):
            if "${" in m.group(2):
                continue
            found.append((m.start(), m.group(2), (), False, "dynamic"))

        imports = []
        for _, source, specifiers, is_type_only, kind in sorted(found, key=lambda f: f[0]):
            resolved = resolver.resolve(source, rel_path) if resolver else None
            imports.append(ImportInfo(source, specifiers, is_type_only, resolved, kind))
        return tuple(imports)

    def extract_exports(self, text: str) -> tuple[ExportInfo, ...]:
        found: list[tuple[int, ExportInfo]] = []

        for m in _EXPORT_DECL.finditer(text):
            keyword = re.sub(r"\s+", " ", m.group(1))
            kind = _DECL_KINDS[keyword]
            signature = None
            if kind == "function":
                params = re.match(r"\s*(?:<[^(]*>)?\s*\(", text[m.end():])
                if params:
                    signature = _signature(text, m.end() + params.end() - 1)
            found.append((
                m.start(),
                ExportInfo(m.group(2), kind, kind in ("type", "interface"), signature),
            ))

        for m in _EXPORT_DEFAULT.finditer(text):
            found.append((m.start(), self._default_export(text, m.end())))

        for m in _EXPORT_LIST.finditer(text):
            list_type_only = bool(m.group(1))
            for original, alias, is_type in _named_items(m.group(2)):
                if alias == "default":
                    found.append((m.start(), ExportInfo(original, "default")))
                else:
                    found.append((m.start(), ExportInfo(alias, "variable", list_type_only or is_type)))

        for m in _REEXPORT.finditer(text):
            type_only = bool(m.group(1))
            target = m.group(2)
            if target.startswith("{"):
                for _, alias, is_type in _named_items(target[1:-1]):
                    kind = "default" if alias == "default" else "variable"
                    found.append((m.start(), ExportInfo(alias, kind, type_only or is_type)))
            elif re.search(r"\s+as\s+", target):
                found.append((m.start(), ExportInfo(re.split(r"\s+as\s+", target)[1], "variable", type_only)))

        exports: list[ExportInfo] = []
        seen: set[str] = set()
        for _, export in sorted(found, key=lambda f: f[0]):
            # Overload signatures repeat the name
            if export.name in seen:
                continue
            seen.add(export.name)
            exports.append(export)
        return tuple(exports)

    @staticmethod
    def _default_export(text: str, pos: int) -> ExportInfo:
        rest = text[pos:pos + 400]
        func = re.match(r"(?:async\s+)?function\b\s*\*?\s*([\w$]+)?\s*(?:<[^(]*>)?\s*\(", rest)
        if func:
            return ExportInfo(func.group(1) or "default", "default", False, _signature(text, pos + func.end() - 1))
        cls = re.match(r"(?:abstract\s+)?class\b\s*([\w$]+)?", rest)
        if cls:
            return ExportInfo(cls.group(1) or "default", "default")
        ident = re.match(r"([A-Za-z_$][\w$]*)\s*(?:;|\n|$)", rest)
        if ident:
            return ExportInfo(ident.group(1), "default")
        return ExportInfo("default", "default")

    # --- Behaviour ---

    @staticmethod
    def _has_client_directive(text: str) -> bool:
        """True if the directive prologue contains 'use client'."""
        pos = 0
        while True:
            m = _DIRECTIVE.match(text, pos)
            if not m:
                return False
            if m.group(2) == "use client":
                return True
            pos = m.end()

    def extract_hooks(self, text: str) -> tuple[str, ...]:
        hooks = []
        for m in _HOOK_CALL.finditer(text):
            if _FUNCTION_BEFORE.search(text, max(0, m.start() - 12), m.start()):
                continue
            hooks.append(m.group(1))
        return dedupe(hooks)

    def extract_state(self, text: str) -> tuple[StateInfo, ...]:
        state = []
        for m in _STATE_HOOK.finditer(text):
            open_paren = m.end() - 1
            close = find_matching(text, open_paren)
            args = split_top_level(text[open_paren + 1:close]) if close != -1 else []
            index = 0 if m.group(2) == "useState" else 1
            initial = args[index] if len(args) > index else None
            state.append(StateInfo(m.group(1), initial))
        return tuple(state)

    def extract_api_calls(self, text: str) -> tuple[ApiCallInfo, ...]:
        calls: list[tuple[int, ApiCallInfo]] = []
        for m in _FETCH.finditer(text):
            method = "GET"
            open_paren = text.index("(", m.start())
            close = find_matching(text, open_paren)
            if close != -1:
                option = _FETCH_METHOD.search(text, m.end(), close)
                if option:
                    method = option.group(1).upper()
            calls.append((m.start(), ApiCallInfo(m.group(2), method)))
        for m in _AXIOS.finditer(text):
            calls.append((m.start(), ApiCallInfo(m.group(3), m.group(1).upper())))
        return tuple(call for _, call in sorted(calls, key=lambda c: c[0]))

    @staticmethod
    def extract_env_vars(text: str) -> tuple[str, ...]:
        return dedupe(m.group(1) or m.group(2) or m.group(3) for m in _ENV_VAR.finditer(text))

    @staticmethod
    def extract_lifecycle(text: str) -> tuple[str, ...]:
        return dedupe(m.group(1) or m.group(2) for m in _LIFECYCLE.finditer(text))

    def extract_data_access(self, text: str) -> tuple[DataAccess, ...]:
        if self.db_pattern is None:
            return ()
        return dedupe(DataAccess(m.group(1), m.group(2)) for m in self.db_pattern.finditer(text))

    @staticmethod
    def extract_elements(text: str) -> tuple[str, ...]:
        return dedupe(m.group(1) for m in _JSX_ELEMENT.finditer(text))

    @staticmethod
    def extract_search_params(text: str) -> tuple[str, ...]:
        names = [(m.start(), m.group(1)) for m in _SEARCH_PARAM_GET.finditer(text)]
        names += [(m.start(), m.group(1)) for m in _SEARCH_PARAM_PROP.finditer(text)]
        return dedupe(name for _, name in sorted(names))

    @staticmethod
    def _data_fetching_method(text: str, exports: tuple[ExportInfo, ...]) -> str | None:
        for export in exports:
            if export.name in DATA_FETCHING_EXPORTS:
                return export.name
        if _GET_INITIAL_PROPS.search(text):
            return "getInitialProps"
        return None

    @staticmethod
    def _i18n_namespace(text: str) -> str | None:
        m = _I18N.search(text)
        return m.group(1) if m else None
