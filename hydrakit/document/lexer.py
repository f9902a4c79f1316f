"""
Lexical analyzer of the component-file section grammar.

A component file is a sequence of top-level sections:

    <data window="user" merge="deep">{ ... }</data>
    <schema lang="js-zod">...</schema>
    <template>...</template>
    <logic>...</logic>

with optional HTML comments between them. The lexer emits tokens lazily
so that the parser can reject an unknown section before its body is
scanned.
"""

from __future__ import annotations

import bisect
import enum
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NoReturn, Optional, Tuple

from ..errors import ParseError


class SectionTokenType(enum.Enum):
    """Token kinds of the section grammar."""
    TEXT = "TEXT"                    # stray text outside sections or a section body
    COMMENT = "COMMENT"              # <!-- ... --> outside sections
    SECTION_START = "SECTION_START"  # <name attr="v">
    SECTION_END = "SECTION_END"      # </name>
    EOF = "EOF"


@dataclass(frozen=True)
class SectionToken:
    """Section-grammar token with its source position."""
    type: SectionTokenType
    value: str
    position: int
    line: int
    column: int
    tag: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"SectionToken({self.type.name}, {self.tag or self.value!r}, {self.line}:{self.column})"


_TAG_START_RE = re.compile(r"<([A-Za-z][\w-]*)")
_OPEN_TAG_RE = re.compile(
    r"""<(?P<tag>[A-Za-z][\w-]*)(?P<attrs>(?:\s+[^\s=>/"']+\s*=\s*(?:"[^"]*"|'[^']*'))*)\s*>"""
)
_ATTRIBUTE_RE = re.compile(r"""([^\s=>/"']+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_CLOSE_TAG_RE = re.compile(r"</([A-Za-z][\w-]*)\s*>")


def parse_attributes(raw: str) -> Dict[str, str]:
    """Parses ``key="value"`` pairs of an opening tag (last one wins)."""
    attributes: Dict[str, str] = {}
    for match in _ATTRIBUTE_RE.finditer(raw):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attributes[match.group(1)] = value
    return attributes


class SectionLexer:
    """
    Tokenizer for component files.

    Section bodies are taken verbatim up to the matching close tag;
    same-name tags nested inside a body are balanced, so a <template>
    element inside the <template> section is kept as content.
    """

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        self.position = 0
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def tokenize(self) -> List[SectionToken]:
        """Tokenizes the whole file (EOF token included)."""
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[SectionToken]:
        """
        Yields tokens one by one.

        Raises:
            ParseError: On unclosed comments, malformed opening tags,
                stray closing tags and sections without a closing tag
        """
        while self.position < self.length:
            if self.text.startswith("<!--", self.position):
                yield self._lex_comment()
            elif _TAG_START_RE.match(self.text, self.position):
                yield from self._lex_section()
            elif _CLOSE_TAG_RE.match(self.text, self.position):
                match = _CLOSE_TAG_RE.match(self.text, self.position)
                self._error(f"Unexpected closing tag </{match.group(1)}>", self.position)
            else:
                yield self._lex_text()

        line, column = self.line_col(self.position)
        yield SectionToken(SectionTokenType.EOF, "", self.position, line, column)

    def _lex_comment(self) -> SectionToken:
        start = self.position
        end = self.text.find("-->", start + 4)
        if end == -1:
            self._error("Unclosed comment", start)
        self.position = end + 3
        return self._token(SectionTokenType.COMMENT, self.text[start:self.position], start)

    def _lex_text(self) -> SectionToken:
        start = self.position
        pos = start + 1
        while pos < self.length:
            pos = self.text.find("<", pos)
            if pos == -1:
                pos = self.length
                break
            if (self.text.startswith("<!--", pos)
                    or _TAG_START_RE.match(self.text, pos)
                    or _CLOSE_TAG_RE.match(self.text, pos)):
                break
            pos += 1
        self.position = pos
        return self._token(SectionTokenType.TEXT, self.text[start:pos], start)

    def _lex_section(self) -> Iterator[SectionToken]:
        start = self.position
        match = _OPEN_TAG_RE.match(self.text, start)
        if not match:
            tag = _TAG_START_RE.match(self.text, start).group(1)
            self._error(f"Malformed opening tag <{tag}>", start)

        tag = match.group("tag")
        attributes = parse_attributes(match.group("attrs"))
        self.position = match.end()
        yield self._token(SectionTokenType.SECTION_START, match.group(0), start, tag, attributes)

        body_start = self.position
        body_end, close_start, close_end = self._find_closing(tag, body_start, start)
        yield self._token(SectionTokenType.TEXT, self.text[body_start:body_end], body_start, tag)

        self.position = close_end
        yield self._token(SectionTokenType.SECTION_END, self.text[close_start:close_end], close_start, tag)

    def _find_closing(self, tag: str, body_start: int, open_start: int) -> Tuple[int, int, int]:
        """Finds the close tag balancing nested same-name tags."""
        open_re = re.compile(rf"<{re.escape(tag)}(?=[\s>])")
        close_re = re.compile(rf"</{re.escape(tag)}\s*>")
        depth = 1
        pos = body_start

        while True:
            close = close_re.search(self.text, pos)
            if not close:
                self._error(f"Missing closing tag for <{tag}>", open_start)
            depth += sum(1 for _ in open_re.finditer(self.text, pos, close.start()))
            depth -= 1
            if depth == 0:
                return close.start(), close.start(), close.end()
            pos = close.end()

    # ======= Position helpers =======

    def line_col(self, offset: int) -> Tuple[int, int]:
        """Converts an offset into a 1-based (line, column) pair."""
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index] + 1

    def _token(
        self,
        token_type: SectionTokenType,
        value: str,
        offset: int,
        tag: str = "",
        attributes: Optional[Dict[str, str]] = None,
    ) -> SectionToken:
        line, column = self.line_col(offset)
        return SectionToken(token_type, value, offset, line, column, tag, dict(attributes or {}))

    def _error(self, message: str, offset: int) -> NoReturn:
        line, column = self.line_col(offset)
        raise ParseError(message, line=line, column=column, source_type="component")


__all__ = ["SectionTokenType", "SectionToken", "SectionLexer", "parse_attributes"]
