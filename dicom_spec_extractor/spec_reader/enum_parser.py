import logging
import re
from collections.abc import Callable
from typing import Optional

from dicom_spec_extractor.spec_reader.spec_reader import (
    ElementTree,
    OptionalElement,
    UnresolvedReferenceError,
    cleaned_value,
)

ENUM_RE = re.compile(r"enum=([^;]*);")
ENUM_SEPARATOR = "|"


def encode_enum(terms: list[str]) -> str:
    return f"enum={ENUM_SEPARATOR.join(terms)};"


def decode_enums(text: str) -> tuple[str, list[str]]:
    """Split `text` into the text without enum markers and the enum terms."""
    terms = []
    for match in ENUM_RE.finditer(text):
        terms.extend(term for term in match.group(1).split(ENUM_SEPARATOR) if term)
    return " ".join(ENUM_RE.sub(" ", text).split()), terms


class EnumParser:
    """Flattens term lists and resolves linked term lists."""

    docbook_ns = "{http://docbook.org/ns/docbook}"
    linked_terms_regex = re.compile(
        r'See (?:Section |Table )?linkend="?(sect_[^"\s]+?)"?'
        r" for (?:the )?(Defined Terms|Enumerated Values)\.?"
    )

    def __init__(self, find_section: Callable[[str], OptionalElement]) -> None:
        self._find_section = find_section
        self._enum_cache: dict[str, Optional[list[str]]] = {}

    def terms(self, var_list: ElementTree.Element) -> list[str]:
        terms = []
        for item in var_list.findall(self.docbook_ns + "varlistentry"):
            term = item.find(self.docbook_ns + "term")
            if term is not None:
                text = " ".join("".join(term.itertext()).split())
                if text:
                    terms.append(cleaned_value(text))
        return terms

    def encode(self, var_list: ElementTree.Element) -> str:
        """Return the terms of a `variablelist` in the `enum=...;` encoding."""
        return encode_enum(self.terms(var_list))

    def linked_terms(self, link: str) -> Optional[list[str]]:
        """Return the terms of the first term list in the linked section,
        or `None` if the section contains no term list.

        Raises
        ------
        UnresolvedReferenceError
            If the section does not exist.
        """
        if link not in self._enum_cache:
            section = self._find_section(link)
            if section is None:
                raise UnresolvedReferenceError(f"Failed to lookup section {link}")
            var_list = section.find(f".//{self.docbook_ns}variablelist")
            if var_list is None:
                logging.getLogger().warning("No term list found in %s", link)
                self._enum_cache[link] = None
            else:
                self._enum_cache[link] = self.terms(var_list)
        return self._enum_cache[link]

    def expand(self, text: str) -> str:
        """Replace "See <section> for Defined Terms" phrases in `text` by the
        encoded terms found in the linked section. Phrases linking to a
        section without term list are kept as they are."""
        return self.linked_terms_regex.sub(self._encoded_terms, text)

    def _encoded_terms(self, match: re.Match) -> str:
        terms = self.linked_terms(match.group(1))
        if terms is None:
            return match.group(0)
        return encode_enum(terms)
