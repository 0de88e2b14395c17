"""
Part6Reader collects DICOM Data Element and UID information.
The information is taken from the DICOM dictionary (PS3.6) in docbook format
as provided by ACR NEMA.
"""

from typing import Optional

from dicom_spec_extractor.spec_reader.normalizer import normalize_uids, render_uids
from dicom_spec_extractor.spec_reader.records import (
    ResultBundle,
    Tag,
    Uid,
    uid_from_row,
)
from dicom_spec_extractor.spec_reader.spec_reader import NoRecordsError
from dicom_spec_extractor.spec_reader.table_reader import TableReader

TAG_TABLES = (
    # 0002: DICOM File Meta Elements
    ("table_7-1", "Registry of DICOM File Meta Elements"),
    # 0004: DICOM Directory Structuring Elements
    ("table_8-1", "Registry of DICOM Directory Structuring Elements"),
    # 0008 and following: DICOM Data Elements
    ("table_6-1", "Registry of DICOM Data Elements"),
)

UID_TABLE = ("table_A-1", "UID Values")

# bundle name and UID type
UID_TYPES = (
    ("transfer syntax uids", "Transfer Syntax"),
    ("sop class uids", "SOP Class"),
)


class Part6Reader(TableReader):
    """Reads information from PS3.6 in docbook format."""

    def __init__(self, root, version=None):
        super(Part6Reader, self).__init__(root, version)
        self._data_elements = None
        self._uid_rows = None

    def data_elements(self) -> list[Tag]:
        """Return the registered DICOM data elements in document order."""
        if self._data_elements is None:
            self._data_elements = self.read_tags(TAG_TABLES)
        return self._data_elements

    def uids(self, uid_type: str) -> list[Uid]:
        """Return the UIDs having the given UID type (e.g. 'SOP Class').

        Raises
        ------
        NoRecordsError
            If no UID of this type exists.
        """
        if self._uid_rows is None:
            self._uid_rows = self.table_rows(*UID_TABLE)
        uids = [
            uid
            for uid in (uid_from_row(row, uid_type) for row in self._uid_rows)
            if uid is not None
        ]
        if not uids:
            raise NoRecordsError(f"Empty uids for type '{uid_type}'")
        return uids

    def bundles(self, origin: Optional[str] = None) -> list[ResultBundle]:
        bundles = [self.tag_bundle("tags", self.data_elements(), origin)]
        for name, uid_type in UID_TYPES:
            uids = self.uids(uid_type)
            bundles.append(
                ResultBundle(
                    name=name,
                    origin=origin,
                    raw=uids,
                    data=render_uids(normalize_uids(uids)),
                )
            )
        return bundles
