"""
TableParser splits docbook tables into rows of cell values.
Each cell is represented by the list of the cleaned text values of its
child elements (usually one `para` per value).
"""

import re
from typing import Optional

from dicom_spec_extractor.spec_reader.spec_reader import (
    DOCBOOK_NS,
    ElementTree,
    cleaned_value,
)

Row = list[list[str]]

LINKEND_RE = re.compile(r'linkend="?([A-Za-z]+_[^"\s]+?)"?(?=[\s,;:)]|$)')


def local_name(node: ElementTree.Element) -> str:
    """Return the tag name of `node` without the namespace, or an empty
    string for comments and processing instructions."""
    if not isinstance(node.tag, str):
        return ""
    return node.tag.rpartition("}")[2]


def xref_marker(link: str) -> str:
    return f'linkend="{link}"'


def linkend_from(text: str) -> Optional[str]:
    """Return the id of the first cross-reference marker in `text`."""
    match = LINKEND_RE.search(text)
    return match.group(1) if match else None


def linkends_in(text: str) -> list[str]:
    return LINKEND_RE.findall(text)


class TableParser:
    """Decomposes docbook tables into rows and cell values."""

    docbook_ns = DOCBOOK_NS

    def __init__(self, enum_parser) -> None:
        self._enum_parser = enum_parser

    def rows(self, table: ElementTree.Element) -> list[Row]:
        """Return the body rows of `table` as lists of cell values.

        A table without a body has no rows.
        """
        body = table.find(self.docbook_ns + "tbody")
        if body is None:
            return []
        return [
            [self.cell_values(cell) for cell in row.findall(self.docbook_ns + "td")]
            for row in body.findall(self.docbook_ns + "tr")
        ]

    def cell_values(self, cell: ElementTree.Element) -> list[str]:
        """Return the non-empty values of the child elements of `cell`.

        Text directly inside the cell is ignored, as it contains only
        formatting whitespace.
        """
        values = []
        for child in cell:
            if not local_name(child):
                continue
            value = self.node_value(child)
            if value:
                values.append(value)
        return values

    def node_value(self, node: ElementTree.Element) -> str:
        name = local_name(node)
        if name == "xref":
            return xref_marker(node.attrib.get("linkend", ""))
        if name == "variablelist":
            return self._enum_parser.encode(node)
        return cleaned_value(" ".join(self._text_parts(node)))

    def _text_parts(self, node: ElementTree.Element) -> list[str]:
        parts = [node.text or ""]
        for child in node:
            if local_name(child):
                parts.append(self.node_value(child))
            parts.append(child.tail or "")
        return [" ".join(part.split()) for part in parts if part.strip()]
