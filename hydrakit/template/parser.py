"""
Recursive-descent parser of the expression grammar.

Turns the token stream produced by TemplateLexer into a Template AST with
properly nested if/unless/each blocks.
"""

from __future__ import annotations

from typing import List, NoReturn, Optional

from .lexer import TemplateLexer
from .nodes import (
    CommentNode, EachBlockNode, IfBlockNode, Location, PartialNode,
    Template, TemplateNode, TextNode, UnlessBlockNode, VariableNode,
)
from .tokens import Token, TokenType
from ..errors import ParseError

# Blocks that accept a single {{else}} branch
_ELSE_BLOCKS = ("if", "unless")


class TemplateParser:
    """
    Parser for template token streams.

    Each block is parsed by ``parse_block``, which consumes child nodes
    until the matching close tag. The Python call stack plays the role of
    the stack of open block kinds, so an inner {{#if}} can never be closed
    by the close tag of an outer block.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0

    def parse(self) -> Template:
        """
        Parses the whole token stream.

        Returns:
            Root Template node

        Raises:
            ParseError: On unbalanced or misplaced block tags
        """
        children: List[TemplateNode] = []

        while not self._is_at_end():
            token = self._current()
            if token.type == TokenType.BLOCK_CLOSE:
                self._error(f"Unexpected closing tag: {{{{/{token.value}}}}}", token)
            if token.type == TokenType.ELSE:
                self._error("Unexpected {{else}} outside of block", token)
            children.append(self._parse_node())

        location = None
        if self.tokens:
            first, last = self.tokens[0], self.tokens[-1]
            location = Location(first.line, first.column, last.line, last.column)
        return Template(children=children, location=location)

    def _parse_node(self) -> TemplateNode:
        token = self._advance()

        if token.type == TokenType.TEXT:
            return TextNode(text=token.value, location=self._location(token))
        if token.type == TokenType.VARIABLE:
            return VariableNode(name=token.value, raw=False, location=self._location(token))
        if token.type == TokenType.RAW_VARIABLE:
            return VariableNode(name=token.value, raw=True, location=self._location(token))
        if token.type == TokenType.PARTIAL:
            return PartialNode(name=token.value, location=self._location(token))
        if token.type == TokenType.COMMENT:
            return CommentNode(text=token.value, location=self._location(token))
        if token.type == TokenType.BLOCK_OPEN:
            return self.parse_block(token)

        self._error(f"Unexpected token: {token.type.name}", token)

    def parse_block(self, open_token: Token) -> TemplateNode:
        """
        Parses the body of a block whose open tag was already consumed.

        Args:
            open_token: The BLOCK_OPEN token ({{#kind argument}})

        Returns:
            IfBlockNode, UnlessBlockNode or EachBlockNode

        Raises:
            ParseError: "Missing closing tag for {{#kind}}" at the opening
                tag when the input ends first; mismatched close tags and
                misplaced {{else}} are reported at their own position
        """
        kind = open_token.value
        primary: List[TemplateNode] = []
        alternate: Optional[List[TemplateNode]] = None
        current = primary

        while not self._is_at_end():
            token = self._current()

            if token.type == TokenType.BLOCK_CLOSE:
                if token.value != kind:
                    self._error(
                        f"Unexpected closing tag {{{{/{token.value}}}}}, expected {{{{/{kind}}}}}",
                        token,
                    )
                self._advance()
                return self._build_block(open_token, token, primary, alternate or [])

            if token.type == TokenType.ELSE:
                if kind not in _ELSE_BLOCKS:
                    self._error(f"Unexpected {{{{else}}}} inside {{{{#{kind}}}}}", token)
                if alternate is not None:
                    self._error(f"Duplicate {{{{else}}}} in {{{{#{kind}}}}}", token)
                self._advance()
                alternate = []
                current = alternate
                continue

            current.append(self._parse_node())

        self._error(f"Missing closing tag for {{{{#{kind}}}}}", open_token)

    def _build_block(
        self,
        open_token: Token,
        close_token: Token,
        primary: List[TemplateNode],
        alternate: List[TemplateNode],
    ) -> TemplateNode:
        location = Location(
            open_token.line, open_token.column,
            close_token.end_line or close_token.line, close_token.end_column or close_token.column,
        )
        kind = open_token.value
        if kind == "if":
            return IfBlockNode(
                condition=open_token.argument,
                if_content=primary,
                else_content=alternate,
                location=location,
            )
        if kind == "unless":
            return UnlessBlockNode(
                condition=open_token.argument,
                content=primary,
                else_content=alternate,
                location=location,
            )
        return EachBlockNode(items=open_token.argument, content=primary, location=location)

    # ======= Token stream helpers =======

    def _current(self) -> Token:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return Token(TokenType.EOF, "", 0, 0, 0)

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.position += 1
        return token

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    @staticmethod
    def _location(token: Token) -> Location:
        return Location(token.line, token.column, token.end_line or token.line, token.end_column or token.column)

    @staticmethod
    def _error(message: str, token: Token) -> NoReturn:
        raise ParseError(message, line=token.line, column=token.column, source_type="template")


def parse_template(text: str, line: int = 1, column: int = 1) -> Template:
    """
    Parses template source text into an AST.

    Args:
        text: Template source
        line: Line number of the first character (for embedded templates)
        column: Column number of the first character

    Raises:
        ParseError: On any syntax error
    """
    tokens = TemplateLexer(text, line, column).tokenize()
    return TemplateParser(tokens).parse()


__all__ = ["TemplateParser", "parse_template"]
