"""
BookReader is the entry point for reading a DICOM standard part in docbook
format. It checks the book label and version and dispatches to the reader
of the respective part.
"""

import logging
import sys
from typing import Optional

from dicom_spec_extractor.spec_reader.part3_reader import (
    DEFAULT_IODS,
    IodTable,
    Part3Reader,
)
from dicom_spec_extractor.spec_reader.part5_reader import Part5Reader
from dicom_spec_extractor.spec_reader.part6_reader import Part6Reader
from dicom_spec_extractor.spec_reader.part7_reader import Part7Reader
from dicom_spec_extractor.spec_reader.records import ResultBundle, Version
from dicom_spec_extractor.spec_reader.spec_reader import (
    DOCBOOK_NS,
    ElementTree,
    MissingLabelError,
    MissingRootError,
    MissingVersionError,
    UnknownBookLabelError,
    VersionPrefixMismatchError,
    cleaned_value,
)

PROGRAM_NAME = "DICOM"

BOOK_READERS = {
    # IOD modules
    "PS3.3": Part3Reader,
    # data structures and VRs
    "PS3.5": Part5Reader,
    # data dictionary
    "PS3.6": Part6Reader,
    # message exchange command fields
    "PS3.7": Part7Reader,
}


def find_book(document) -> ElementTree.Element:
    """Return the `book` element of a parsed document or element tree.

    Raises
    ------
    MissingRootError
        If the document has no book element.
    """
    if hasattr(document, "getroot"):
        document = document.getroot()
    if document is not None and document.tag == DOCBOOK_NS + "book":
        return document
    book = document.find(f".//{DOCBOOK_NS}book") if document is not None else None
    if book is None:
        raise MissingRootError("No book node")
    return book


def parse_version(subtitle: str, label: str) -> Version:
    """Return the version contained in a book subtitle like
    'DICOM PS3.6 2020a - Data Dictionary'."""
    prefix = f"{PROGRAM_NAME} {label}"
    if not subtitle.startswith(prefix):
        raise VersionPrefixMismatchError(prefix, subtitle)
    return Version.from_string(subtitle[len(prefix) :].split("-")[0])


class BookReader:
    """Reads the information contained in one part of the DICOM standard."""

    def __init__(
        self,
        iods: tuple[IodTable, ...] = DEFAULT_IODS,
        strict_nesting: bool = True,
    ) -> None:
        self.iods = iods
        self.strict_nesting = strict_nesting
        self.logger = logging.getLogger()
        if not self.logger.hasHandlers():
            self.logger.addHandler(logging.StreamHandler(sys.stdout))

    def parse(self, document, origin: Optional[str] = None) -> list[ResultBundle]:
        """Return the result bundles for the given parsed docbook document.

        Parameters
        ----------
        document : ElementTree | Element
            The parsed document.
        origin : str | None
            Where the document has been read from, stored in the bundles.

        Returns
        -------
        list[ResultBundle]
            One or more named results, depending on the part.
        """
        book = find_book(document)
        label = book.attrib.get("label")
        if not label:
            raise MissingLabelError("No book label")
        subtitle = book.find(f".//{DOCBOOK_NS}subtitle")
        if subtitle is None:
            raise MissingVersionError("No book subtitle")
        version = parse_version(cleaned_value("".join(subtitle.itertext())), label)
        reader_class = BOOK_READERS.get(label)
        if reader_class is None:
            raise UnknownBookLabelError(label)
        self.logger.info("Reading %s %s...", label, version)
        if reader_class is Part3Reader:
            reader = Part3Reader(book, version, self.iods, self.strict_nesting)
        else:
            reader = reader_class(book, version)
        return reader.bundles(origin)
