"""
Lexical types of the expression grammar.

Every token keeps its position in the source so that parse errors can
point at the exact line and column.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Token kinds produced by the template lexer."""
    TEXT = "TEXT"                  # literal text run
    VARIABLE = "VARIABLE"          # {{name}}
    RAW_VARIABLE = "RAW_VARIABLE"  # {{{name}}}
    BLOCK_OPEN = "BLOCK_OPEN"      # {{#if cond}}
    BLOCK_CLOSE = "BLOCK_CLOSE"    # {{/if}}
    ELSE = "ELSE"                  # {{else}}
    PARTIAL = "PARTIAL"            # {{> name}}
    COMMENT = "COMMENT"            # {{! ... }} / {{!-- ... --}}
    EOF = "EOF"


# Block helpers understood by the parser
BLOCK_KINDS = ("if", "unless", "each")


@dataclass(frozen=True)
class Token:
    """
    Token with positional information.

    For BLOCK_OPEN / BLOCK_CLOSE ``value`` holds the block kind and
    ``argument`` the condition or items expression; for every other
    expression token ``value`` is the trimmed name.
    """
    type: TokenType
    value: str
    position: int        # offset in the source text
    line: int            # 1-based line number
    column: int          # 1-based column number
    argument: str = ""
    end_line: int = 0
    end_column: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token", "BLOCK_KINDS"]
