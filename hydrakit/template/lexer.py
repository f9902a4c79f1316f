"""
Lexical analyzer of the Handlebars-style expression grammar.

Scans the template linearly and splits it into literal text runs and
expression tokens:

- {{name}}            escaped variable
- {{{name}}}          raw variable
- {{#if cond}}        block open (if / unless / each)
- {{/if}}             block close
- {{else}}
- {{> partial}}
- {{! comment }} / {{!-- comment --}}
"""

from __future__ import annotations

import re
from typing import List, NoReturn, Tuple

from .tokens import BLOCK_KINDS, Token, TokenType
from ..errors import ParseError

_BLOCK_OPEN_RE = re.compile(r"#(\w+)(?:\s+(.*))?$", re.DOTALL)


class TemplateLexer:
    """
    Template tokenizer.

    The start line/column may be shifted so that a template embedded in a
    component file reports positions relative to that file.
    """

    def __init__(self, text: str, line: int = 1, column: int = 1):
        self.text = text
        self.length = len(text)
        self.position = 0
        self.line = line
        self.column = column

    def tokenize(self) -> List[Token]:
        """
        Tokenizes the whole text.

        Returns:
            Token list terminated by an EOF token

        Raises:
            ParseError: On an unterminated or malformed expression
        """
        tokens: List[Token] = []

        while self.position < self.length:
            if self.text.startswith("{{", self.position):
                tokens.append(self._lex_expression())
            else:
                tokens.append(self._lex_text())

        tokens.append(Token(TokenType.EOF, "", self.position, self.line, self.column))
        return tokens

    def _lex_text(self) -> Token:
        start = self._mark()
        end = self.text.find("{{", self.position)
        if end == -1:
            end = self.length
        value = self.text[self.position:end]
        self._advance_to(end)
        return self._token(TokenType.TEXT, value, start)

    def _lex_expression(self) -> Token:
        start = self._mark()
        pos = self.position

        if self.text.startswith("{{!--", pos):
            content = self._read_until("--}}", pos + 5, start)
            return self._token(TokenType.COMMENT, content, start)

        if self.text.startswith("{{!", pos):
            content = self._read_until("}}", pos + 3, start)
            return self._token(TokenType.COMMENT, content, start)

        if self.text.startswith("{{{", pos):
            name = self._read_until("}}}", pos + 3, start).strip()
            if not name:
                self._error("Empty expression", start)
            return self._token(TokenType.RAW_VARIABLE, name, start)

        content = self._read_until("}}", pos + 2, start).strip()
        return self._classify(content, start)

    def _classify(self, content: str, start: Tuple[int, int, int]) -> Token:
        """Turns the inner text of {{ ... }} into a typed token."""
        if not content:
            self._error("Empty expression", start)

        if content.startswith("#"):
            match = _BLOCK_OPEN_RE.match(content)
            kind = match.group(1) if match else content[1:].strip()
            if kind not in BLOCK_KINDS:
                self._error(f"Unknown block helper: {{{{#{kind}}}}}", start)
            argument = (match.group(2) or "").strip() if match else ""
            if not argument:
                self._error(f"Missing argument for {{{{#{kind}}}}}", start)
            return self._token(TokenType.BLOCK_OPEN, kind, start, argument)

        if content.startswith("/"):
            kind = content[1:].strip()
            if kind not in BLOCK_KINDS:
                self._error(f"Unknown closing tag: {{{{/{kind}}}}}", start)
            return self._token(TokenType.BLOCK_CLOSE, kind, start)

        if content == "else":
            return self._token(TokenType.ELSE, content, start)

        if content.startswith(">"):
            name = content[1:].strip()
            if not name:
                self._error("Missing partial name", start)
            return self._token(TokenType.PARTIAL, name, start)

        return self._token(TokenType.VARIABLE, content, start)

    # ======= Position helpers =======

    def _read_until(self, closing: str, content_start: int, start: Tuple[int, int, int]) -> str:
        """Returns text up to ``closing`` and moves past the delimiter."""
        end = self.text.find(closing, content_start)
        if end == -1:
            self._error(f"Expected '{closing}'", start)
        content = self.text[content_start:end]
        self._advance_to(end + len(closing))
        return content

    def _advance_to(self, target: int) -> None:
        chunk = self.text[self.position:target]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        self.position = target

    def _mark(self) -> Tuple[int, int, int]:
        return self.position, self.line, self.column

    def _token(self, token_type: TokenType, value: str, start: Tuple[int, int, int], argument: str = "") -> Token:
        position, line, column = start
        return Token(
            token_type, value, position, line, column,
            argument=argument, end_line=self.line, end_column=self.column,
        )

    @staticmethod
    def _error(message: str, start: Tuple[int, int, int]) -> NoReturn:
        _, line, column = start
        raise ParseError(message, line=line, column=column, source_type="template")


def tokenize_template(text: str, line: int = 1, column: int = 1) -> List[Token]:
    """Convenience wrapper around TemplateLexer."""
    return TemplateLexer(text, line, column).tokenize()


__all__ = ["TemplateLexer", "tokenize_template"]
