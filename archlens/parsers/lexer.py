"""
Lightweight JavaScript/TypeScript lexer.

The regex extractors in the TypeScript parser need source text without
comments (so commented-out imports don't count) but with string
literals intact (import specifiers and fetch paths live in strings).
This module produces that text in a single pass and, along the way,
checks bracket balance so obviously broken files are reported as parse
failures instead of producing garbage facts.
"""

from __future__ import annotations

import re

from archlens.exceptions import ParseError

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}
_URL_SCHEME = re.compile(r"(?<![\w$])(?:https?|wss?|ftp|file):$")

# Characters after which a '/' starts a regex literal rather than division.
# '<' and '>' are left out so JSX closing tags (`</div>`) are never regexes.
_REGEX_PREFIX = set("(,=:[!&|?{};+-*%~^")


def strip_comments(source: str, path: str = "<source>", check_syntax: bool = True) -> str:
    """
    Blank out comments, keeping line structure and string literals.

    Comment characters are replaced with spaces (newlines kept), so match
    offsets and line numbers in the result line up with the original.

    Args:
        source: Source text.
        path: File path used in error messages.
        check_syntax: Verify bracket balance and terminated literals.

    Returns:
        Source text with comments blanked.

    Raises:
        ParseError: If check_syntax is set and the text is malformed.
    """
    out: list[str] = []
    stack: list[tuple[str, int]] = []
    # Brace depth at which each open template literal's ${ } began
    template_stack: list[int] = []
    i = 0
    n = len(source)
    line = 1
    last_significant = ""

    def fail(reason: str, at_line: int) -> None:
        if check_syntax:
            raise ParseError(path, reason, at_line)

    while i < n:
        c = source[i]
        nxt = source[i + 1] if i + 1 < n else ""

        # URL scheme in JSX text (`https://`), not a comment
        if c == "/" and nxt == "/" and _URL_SCHEME.search(source, max(0, i - 8), i):
            out.append("//")
            i += 2
            last_significant = "/"
            continue

        # Line comment
        if c == "/" and nxt == "/":
            end = source.find("\n", i)
            if end == -1:
                end = n
            out.append(" " * (end - i))
            i = end
            continue

        # Block comment
        if c == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            if end == -1:
                fail("unterminated block comment", line)
                end = n - 2
            chunk = source[i:end + 2]
            out.append("".join("\n" if ch == "\n" else " " for ch in chunk))
            line += chunk.count("\n")
            i = end + 2
            continue

        # Quoted string. JS strings can't span lines, so a quote with no
        # partner before the newline is JSX text (`Don't`) and stays a plain character.
        if c in ("'", '"'):
            j = i + 1
            while j < n and source[j] != c and source[j] != "\n":
                if source[j] == "\\":
                    j += 1
                j += 1
            if j < n and source[j] == c:
                out.append(source[i:j + 1])
                i = j + 1
                last_significant = c
                continue

        # Template literal (possibly resumed after a ${ } expression)
        if c == "`":
            start = i
            i = _consume_template(source, i + 1, out, template_stack, stack, fail)
            line += source.count("\n", start, i)
            last_significant = "`"
            continue

        # Regex literal: skip its body so brackets inside don't count
        if c == "/" and (last_significant in _REGEX_PREFIX or last_significant == ""):
            j = i + 1
            in_class = False
            while j < n and source[j] != "\n":
                ch = source[j]
                if ch == "\\":
                    j += 2
                    continue
                if ch == "[":
                    in_class = True
                elif ch == "]":
                    in_class = False
                elif ch == "/" and not in_class:
                    break
                j += 1
            if j < n and source[j] == "/":
                j += 1
                while j < n and (source[j].isalpha()):
                    j += 1
                out.append(source[i:j])
                i = j
                last_significant = "/"
                continue
            # Not a regex after all; fall through as a division operator

        if c in _OPENERS:
            stack.append((c, line))
        elif c in _CLOSERS:
            if c == "}" and template_stack and len(stack) == template_stack[-1]:
                # End of a ${ } expression inside a template literal
                template_stack.pop()
                start = i
                i = _consume_template(source, i + 1, out, template_stack, stack, fail)
                line += source.count("\n", start, i)
                last_significant = "`"
                continue
            if not stack or stack[-1][0] != _CLOSERS[c]:
                fail(f"unexpected '{c}'", line)
            else:
                stack.pop()

        if c == "\n":
            line += 1
        if not c.isspace():
            last_significant = c
        out.append(c)
        i += 1

    if template_stack:
        fail("unterminated template literal", line)
    if stack:
        opener, opened_at = stack[-1]
        fail(f"unclosed '{opener}'", opened_at)

    return "".join(out)


def _consume_template(source, i, out, template_stack, stack, fail) -> int:
    """
    Copy template literal text starting at index i (just past '`' or '}').

    Stops after the closing backtick, or right after a '${' (pushing the
    current bracket depth so the matching '}' resumes the template).
    """
    n = len(source)
    start = i - 1
    j = i
    while j < n:
        ch = source[j]
        if ch == "\\":
            j += 2
            continue
        if ch == "`":
            out.append(source[start:j + 1])
            return j + 1
        if ch == "$" and j + 1 < n and source[j + 1] == "{":
            out.append(source[start:j + 2])
            template_stack.append(len(stack))
            return j + 2
        j += 1
    fail("unterminated template literal", source.count("\n", 0, start) + 1)
    out.append(source[start:])
    return n


def find_matching(text: str, open_index: int) -> int:
    """
    Return the index of the bracket closing the one at open_index.

    Strings are skipped. Returns -1 if there is no match.
    """
    opener = text[open_index]
    closer = _OPENERS[opener]
    depth = 0
    i = open_index
    n = len(text)
    while i < n:
        c = text[i]
        if c in ("'", '"', "`"):
            j = i + 1
            while j < n and text[j] != c:
                if text[j] == "\\":
                    j += 1
                j += 1
            i = j + 1
            continue
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split text on sep, ignoring separators nested in brackets or strings."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in ("'", '"', "`"):
            j = i + 1
            while j < n and text[j] != c:
                if text[j] == "\\":
                    j += 1
                j += 1
            current.append(text[i:j + 1])
            i = j + 1
            continue
        if c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            depth -= 1
        if c == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(c)
        i += 1
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts
