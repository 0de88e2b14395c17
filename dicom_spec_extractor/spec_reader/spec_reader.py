"""
SpecReader is the base for readers of DICOM standard documents in docbook
format as provided by ACR-NEMA.
It provides the element lookup by structural id and the caption checks used
to detect layout changes between standard revisions.
"""

import logging
import re
import sys
from typing import Optional

try:
    import lxml.etree as ElementTree
except ImportError:
    import xml.etree.ElementTree as ElementTree

OptionalElement = Optional[ElementTree.Element]

DOCBOOK_NS = "{http://docbook.org/ns/docbook}"
NEWLINE_RE = re.compile(r"\s*\n\s*")


class SpecReaderError(Exception):
    pass


class SpecReaderFileError(SpecReaderError):
    pass


class SpecReaderParseError(SpecReaderError):
    pass


class SpecReaderLookupError(SpecReaderError):
    pass


class StructuralAbsenceError(SpecReaderParseError):
    """A part of the document that is expected in all revisions is missing."""


class ContentMismatchError(SpecReaderParseError):
    """A located element does not have the expected content."""


class MissingRootError(StructuralAbsenceError):
    pass


class MissingLabelError(StructuralAbsenceError):
    pass


class MissingVersionError(StructuralAbsenceError):
    pass


class UnknownBookLabelError(StructuralAbsenceError):
    def __init__(self, label: str) -> None:
        super().__init__(f"Unknown book label: {label}")
        self.label = label


class MissingElementError(StructuralAbsenceError):
    def __init__(self, element_id: str) -> None:
        super().__init__(f"No node found for {element_id}")
        self.element_id = element_id


class MissingCaptionError(StructuralAbsenceError):
    def __init__(self, element_id: str) -> None:
        super().__init__(f"No node caption for {element_id}")
        self.element_id = element_id


class EmptyCaptionError(StructuralAbsenceError):
    def __init__(self, element_id: str) -> None:
        super().__init__(f"Empty node caption for {element_id}")
        self.element_id = element_id


class NoRecordsError(StructuralAbsenceError):
    pass


class VersionPrefixMismatchError(ContentMismatchError):
    def __init__(self, expected: str, found: str) -> None:
        super().__init__(
            f"Missing DICOM standard version prefix: "
            f"expected '{expected}', found '{found}'"
        )
        self.expected = expected
        self.found = found


class VersionFormatError(ContentMismatchError):
    pass


class CaptionMismatchError(ContentMismatchError):
    def __init__(self, element_id: str, expected: str, found: str) -> None:
        super().__init__(
            f"The node caption is not the expected one for {element_id}: "
            f"expected '{expected}', found '{found}'"
        )
        self.element_id = element_id
        self.expected = expected
        self.found = found


class CaptionSubstringError(ContentMismatchError):
    def __init__(self, element_id: str, expected: str, found: str) -> None:
        super().__init__(
            f"The node caption for {element_id} does not contain "
            f"'{expected}': found '{found}'"
        )
        self.element_id = element_id
        self.expected = expected
        self.found = found


class MalformedRowError(ContentMismatchError):
    record_kind = "row"

    def __init__(self, expected: tuple[int, ...], values: list) -> None:
        super().__init__(
            f"Not the expected {self.record_kind} values size: "
            f"expected {' or '.join(str(e) for e in expected)}, "
            f"got {len(values)} in {values!r}"
        )
        self.expected = expected
        self.values = values


class MalformedTagRowError(MalformedRowError):
    record_kind = "tag"


class MalformedUidRowError(MalformedRowError):
    record_kind = "uid"


class MalformedModuleRowError(MalformedRowError):
    record_kind = "module"


class UnexpectedRowError(ContentMismatchError):
    def __init__(self, table_id: str, text: str) -> None:
        super().__init__(f"Unexpected row in {table_id}: '{text}'")
        self.table_id = table_id
        self.text = text


class UnsupportedNestingError(ContentMismatchError):
    def __init__(self, table_id: str, name: str) -> None:
        super().__init__(
            f"Unsupported sequence nesting level in {table_id}: '{name}'"
        )
        self.table_id = table_id
        self.name = name


class UnknownIdFormatError(SpecReaderLookupError):
    def __init__(self, element_id: str) -> None:
        super().__init__(f"Unknown id format: {element_id}")
        self.element_id = element_id


class UnresolvedReferenceError(SpecReaderLookupError):
    pass


class CyclicReferenceError(SpecReaderLookupError):
    def __init__(self, chain: list[str]) -> None:
        super().__init__("Cyclic reference: " + " -> ".join(chain))
        self.chain = chain


ID_ELEMENTS = {"table_": "table", "sect_": "section"}


def selector_from_id(element_id: str) -> str:
    """Return the element path that matches the element with the given id.

    Ids look like `table_7-1` or `sect_C.7.6.3`; the part after the prefix is
    the value of the `label` attribute of the matching element.

    Raises
    ------
    UnknownIdFormatError
        If the id does not start with a known prefix.
    """
    for prefix, element in ID_ELEMENTS.items():
        if element_id.startswith(prefix):
            label = element_id[len(prefix) :]
            if label:
                return f'.//{DOCBOOK_NS}{element}[@label="{label}"]'
    raise UnknownIdFormatError(element_id)


def cleaned_value(value: str) -> str:
    """Return `value` trimmed, with zero-width spaces (U+200B) and
    newlines removed."""
    return NEWLINE_RE.sub(" ", value.replace("\u200b", "")).strip()


class SpecReader:
    """Base for readers working on a parsed docbook document."""

    docbook_ns = DOCBOOK_NS

    def __init__(self, root: ElementTree.Element) -> None:
        self.root = root
        self.logger = logging.getLogger()
        if not self.logger.hasHandlers():
            self.logger.addHandler(logging.StreamHandler(sys.stdout))

    def _find(self, node: ElementTree.Element, elements: list[str]) -> OptionalElement:
        search_string = "/".join([self.docbook_ns + element for element in elements])
        if node is not None:
            return node.find(search_string)
        return None

    def _findall(
        self, node: ElementTree.Element, elements: list[str]
    ) -> list[ElementTree.Element]:
        search_string = "/".join([self.docbook_ns + element for element in elements])
        return node.findall(search_string)

    @staticmethod
    def _find_all_text(node: ElementTree.Element) -> str:
        text_parts = [text.strip() for text in node.itertext() if text.strip()]
        return cleaned_value(" ".join(text_parts)) if text_parts else ""

    def find_by_id(self, element_id: str) -> OptionalElement:
        """Return the table or section element with the given id, or `None`."""
        return self.root.find(selector_from_id(element_id))

    def get_by_id(self, element_id: str) -> ElementTree.Element:
        """Return the table or section element with the given id.

        Raises
        ------
        MissingElementError
            If the element does not exist in the document.
        """
        node = self.find_by_id(element_id)
        if node is None:
            raise MissingElementError(element_id)
        return node

    def caption_text(self, node: ElementTree.Element, element_id: str) -> str:
        caption_node = self._find(node, ["caption"])
        if caption_node is None:
            caption_node = self._find(node, ["title"])
        if caption_node is None:
            raise MissingCaptionError(element_id)
        caption = self._find_all_text(caption_node)
        if not caption:
            raise EmptyCaptionError(element_id)
        return caption

    def check_caption(
        self,
        node: ElementTree.Element,
        element_id: str,
        expected: str,
        mode: str = "exact",
    ) -> str:
        """Check that the caption (or title for sections) of `node` matches.

        Parameters
        ----------
        node : Element
            The located table or section.
        element_id : str
            The id `node` was located with, used in diagnostics.
        expected : str
            The expected caption.
        mode : str
            'exact' (default): the caption must be equal to `expected`;
            a difference in letter case only is logged as a warning.
            'contains': `expected` must be contained in the caption.

        Returns
        -------
        str
            The caption as found in the document.
        """
        caption = self.caption_text(node, element_id)
        if mode == "contains":
            if expected not in caption:
                raise CaptionSubstringError(element_id, expected, caption)
        elif caption != expected:
            if caption.lower() != expected.lower():
                raise CaptionMismatchError(element_id, expected, caption)
            self.logger.warning(
                "Caption case differs for %s: expected '%s', found '%s'",
                element_id,
                expected,
                caption,
            )
        return caption

    def get_checked(
        self, element_id: str, expected: str, mode: str = "exact"
    ) -> ElementTree.Element:
        """Locate the element with the given id and check its caption."""
        node = self.get_by_id(element_id)
        self.check_caption(node, element_id, expected, mode)
        return node
