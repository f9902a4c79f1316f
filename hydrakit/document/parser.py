"""
Parser of the component-file section grammar.

Consumes the SectionLexer token stream, validates the structure of the
file and hands the body of the <template> section to the expression
grammar. Bodies of <data>, <schema> and <logic> stay raw text.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, NoReturn, Optional, Union

from .lexer import SectionLexer, SectionToken, SectionTokenType
from ..errors import ParseError
from ..template import Location, Template, parse_template

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ("data", "schema", "template", "logic")
REQUIRED_ANY_OF = ("data", "schema", "template")
MERGE_STRATEGIES = ("shallow", "deep", "strict")

KNOWN_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "data": frozenset({"window", "merge", "schema", "layout"}),
    "schema": frozenset({"lang", "version", "envelope", "window", "merge", "layout", "extends"}),
}


@dataclass(frozen=True)
class SectionNode:
    """
    One top-level section of a component file.

    ``content`` is a Template AST for the template section and raw text
    for every other section. ``content_line``/``content_column`` point at
    the first character of the body. Attributes are read-only.
    """
    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    content: Union[Template, str] = ""
    location: Optional[Location] = field(default=None, compare=False)
    raw: str = field(default="", compare=False, repr=False)
    content_line: int = field(default=1, compare=False, repr=False)
    content_column: int = field(default=1, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def is_template(self) -> bool:
        return isinstance(self.content, Template)


class SectionParser:
    """
    Builds SectionNodes from component-file text.

    Validation order: unknown section, duplicate sections, missing
    required section. Attribute problems are checked per section as it is
    parsed.
    """

    def __init__(self, text: str, file_path: Optional[str] = None):
        self.text = text
        self.file_path = file_path
        self.lexer = SectionLexer(text)

    def parse(self) -> List[SectionNode]:
        """
        Parses the file.

        Returns:
            Sections in source order

        Raises:
            ParseError: On structural errors of the file or errors inside
                the template section
        """
        sections: List[SectionNode] = []
        tokens = self._tokens()

        for token in tokens:
            if token.type == SectionTokenType.EOF:
                break
            if token.type == SectionTokenType.COMMENT:
                continue
            if token.type == SectionTokenType.TEXT:
                if token.value.strip():
                    logger.debug(
                        "Ignoring text outside sections at line %d, column %d: %r",
                        token.line, token.column, token.value.strip()[:40],
                    )
                continue

            # SECTION_START
            if token.tag not in KNOWN_SECTIONS:
                self._error(f"Unknown sections: {token.tag}", token)
            body = next(tokens)
            end = next(tokens)
            sections.append(self._build_section(token, body, end))

        self._check_duplicates(sections)
        self._check_required(sections)
        return sections

    def _tokens(self) -> Iterator[SectionToken]:
        try:
            yield from self.lexer.iter_tokens()
        except ParseError as e:
            if self.file_path is None:
                raise
            raise ParseError(e.reason, e.line, e.column, e.source_type, file_path=self.file_path) from e

    # ======= Sections =======

    def _build_section(self, start: SectionToken, body: SectionToken, end: SectionToken) -> SectionNode:
        tag = start.tag
        attributes = self._validate_attributes(start)
        end_line, end_column = self.lexer.line_col(end.position + len(end.value))
        location = Location(start.line, start.column, end_line, end_column)

        if tag == "template":
            content: Union[Template, str] = self._parse_template_body(body)
        else:
            content = body.value

        return SectionNode(
            tag=tag,
            attributes=attributes,
            content=content,
            location=location,
            raw=body.value,
            content_line=body.line,
            content_column=body.column,
        )

    def _parse_template_body(self, body: SectionToken) -> Template:
        try:
            return parse_template(body.value, line=body.line, column=body.column)
        except ParseError as e:
            if self.file_path is None:
                raise
            raise ParseError(e.reason, e.line, e.column, e.source_type, file_path=self.file_path) from e

    def _validate_attributes(self, start: SectionToken) -> Dict[str, str]:
        tag = start.tag
        attributes = dict(start.attributes)
        known = KNOWN_ATTRIBUTES.get(tag)

        if known is not None:
            for name in sorted(set(attributes) - known):
                logger.warning(
                    "Unknown attribute '%s' on <%s> at line %d ignored%s",
                    name, tag, start.line, f" ({self.file_path})" if self.file_path else "",
                )
                del attributes[name]

        merge = attributes.get("merge")
        if merge is not None and merge not in MERGE_STRATEGIES:
            self._error(
                f"Invalid merge strategy '{merge}' on <{tag}> (expected one of: {', '.join(MERGE_STRATEGIES)})",
                start,
            )

        if tag == "schema" and not attributes.get("lang"):
            self._error("Missing required attribute 'lang' on <schema>", start)

        return attributes

    # ======= Structure checks =======

    def _check_duplicates(self, sections: List[SectionNode]) -> None:
        counts = Counter(section.tag for section in sections)
        duplicates = [tag for tag in KNOWN_SECTIONS if counts[tag] > 1]
        if not duplicates:
            return

        # Report at the second occurrence of the first duplicated section
        occurrences = [s for s in sections if s.tag == duplicates[0]]
        location = occurrences[1].location
        raise ParseError(
            f"Duplicate sections: {', '.join(duplicates)}",
            line=location.start_line if location else None,
            column=location.start_column if location else None,
            source_type="component",
            file_path=self.file_path,
        )

    def _check_required(self, sections: List[SectionNode]) -> None:
        present = {section.tag for section in sections}
        if not present.intersection(REQUIRED_ANY_OF):
            raise ParseError(
                f"Must have at least one of: {', '.join(REQUIRED_ANY_OF)}",
                line=1,
                column=1,
                source_type="component",
                file_path=self.file_path,
            )

    def _error(self, message: str, token: SectionToken) -> NoReturn:
        raise ParseError(message, token.line, token.column, "component", file_path=self.file_path)


def parse_sections(text: str, file_path: Optional[str] = None) -> List[SectionNode]:
    """Convenience wrapper around SectionParser."""
    return SectionParser(text, file_path).parse()


__all__ = [
    "KNOWN_SECTIONS",
    "KNOWN_ATTRIBUTES",
    "MERGE_STRATEGIES",
    "SectionNode",
    "SectionParser",
    "parse_sections",
]
