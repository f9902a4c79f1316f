"""
Parsed component document.

A ComponentDocument wraps the source of one component file. It is parsed
once on first access and is read-only afterwards, so a single instance may
be shared between concurrent renders.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from .parser import SectionNode, SectionParser
from ..template import Template, parse_template
from ..template.analysis import collect_variables

logger = logging.getLogger(__name__)

INLINE_PATH = "<inline>"
DEFAULT_WINDOW_ATTRIBUTE = "data"


class ComponentDocument:
    """
    One component file: its sections plus derived accessors.

    Contribution mode:
        "schema" when a <schema> section is present (client data is
        serialized as is), "data" when only a legacy <data> section is
        present (its text is interpolated and parsed as JSON), None
        otherwise. When both sections exist the schema section wins.
    """

    def __init__(self, source: str, file_path: Optional[Union[str, Path]] = None):
        self.source = source
        self.file_path: Optional[str] = str(file_path) if file_path is not None else None
        self._sections: Optional[Dict[str, SectionNode]] = None
        self._data_template: Optional[Template] = None

    @classmethod
    def parse_file(cls, path: Union[str, Path]) -> "ComponentDocument":
        """Reads and parses a component file."""
        path = Path(path)
        document = cls(path.read_text(encoding="utf-8"), path)
        return document.parse()

    def parse(self) -> "ComponentDocument":
        """
        Parses the source (no-op when already parsed).

        Raises:
            ParseError: On any structural or template error
        """
        if self._sections is not None:
            return self

        nodes = SectionParser(self.source, self.file_path).parse()
        sections = {node.tag: node for node in nodes}

        if "schema" in sections and "data" in sections:
            logger.warning(
                "Both <schema> and <data> present in %s; <data> section is ignored",
                self.file_path or INLINE_PATH,
            )

        self._sections = sections
        return self

    @property
    def is_parsed(self) -> bool:
        return self._sections is not None

    # ======= Sections =======

    @property
    def sections(self) -> Dict[str, SectionNode]:
        self.parse()
        return dict(self._sections)

    def section_node(self, name: str) -> Optional[SectionNode]:
        self.parse()
        return self._sections.get(name)

    def section(self, name: str) -> Union[Template, str, None]:
        """Content of a section: Template AST for <template>, raw text otherwise."""
        node = self.section_node(name)
        return node.content if node is not None else None

    def has_section(self, name: str) -> bool:
        return self.section_node(name) is not None

    @property
    def template(self) -> Optional[Template]:
        content = self.section("template")
        return content if isinstance(content, Template) else None

    # ======= Derived attributes =======

    def _active_node(self) -> Optional[SectionNode]:
        """Section whose attributes drive hydration (schema beats data)."""
        return self.section_node("schema") or self.section_node("data")

    def _attribute(self, name: str) -> Optional[str]:
        node = self._active_node()
        return node.attributes.get(name) if node is not None else None

    @property
    def window_attribute(self) -> str:
        return self._attribute("window") or DEFAULT_WINDOW_ATTRIBUTE

    @property
    def merge_strategy(self) -> Optional[str]:
        return self._attribute("merge")

    @property
    def schema_path(self) -> Optional[str]:
        node = self.section_node("data")
        if self.contribution_mode == "data" and node is not None:
            return node.attributes.get("schema")
        return None

    @property
    def schema_lang(self) -> Optional[str]:
        node = self.section_node("schema")
        return node.attributes.get("lang") if node is not None else None

    @property
    def layout(self) -> Optional[str]:
        return self._attribute("layout")

    @property
    def contribution_mode(self) -> Optional[str]:
        if self.has_section("schema"):
            return "schema"
        if self.has_section("data"):
            return "data"
        return None

    # ======= Variables =======

    @property
    def data_template(self) -> Optional[Template]:
        """Legacy <data> text parsed as a template (for interpolation)."""
        node = self.section_node("data")
        if node is None:
            return None
        if self._data_template is None:
            self._data_template = parse_template(
                node.content, line=node.content_line, column=node.content_column
            )
        return self._data_template

    @property
    def template_variables(self) -> List[str]:
        template = self.template
        return template.variables() if template is not None else []

    @property
    def data_variables(self) -> List[str]:
        data_template = self.data_template
        return collect_variables(data_template.children) if data_template is not None else []

    @property
    def all_variables(self) -> List[str]:
        seen = dict.fromkeys(self.template_variables)
        seen.update(dict.fromkeys(self.data_variables))
        return list(seen)

    @property
    def partials(self) -> List[str]:
        template = self.template
        return template.partials() if template is not None else []

    # ======= Identity =======

    def source_path(self, section: Optional[str] = None) -> str:
        """
        Location string used in diagnostics: ``file:line`` or ``<inline>:line``.

        Args:
            section: Section to point at; defaults to the active
                data-contribution section, else line 1
        """
        node = self.section_node(section) if section else self._active_node()
        line = node.location.start_line if node is not None and node.location else 1
        return f"{self.file_path or INLINE_PATH}:{line}"

    @property
    def name(self) -> str:
        if not self.file_path:
            return INLINE_PATH
        return _COMPONENT_SUFFIX_RE.sub("", Path(self.file_path).name)

    def __repr__(self) -> str:
        state = ",".join(self._sections) if self._sections is not None else "unparsed"
        return f"ComponentDocument({self.file_path or INLINE_PATH!s}, {state})"


_COMPONENT_SUFFIX_RE = re.compile(r"\.[^.]+$")


def parse_component(text: str, file_path: Optional[Union[str, Path]] = None) -> ComponentDocument:
    """Parses component text into a ComponentDocument."""
    return ComponentDocument(text, file_path).parse()


__all__ = [
    "INLINE_PATH",
    "DEFAULT_WINDOW_ATTRIBUTE",
    "ComponentDocument",
    "parse_component",
]
