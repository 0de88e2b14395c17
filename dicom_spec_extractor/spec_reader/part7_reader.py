"""
Part7Reader collects the DICOM Command Fields used in message exchange.
The information is taken from PS3.7 in docbook format as provided by ACR NEMA.
"""

from typing import Optional

from dicom_spec_extractor.spec_reader.records import ResultBundle
from dicom_spec_extractor.spec_reader.table_parser import Row
from dicom_spec_extractor.spec_reader.table_reader import TableReader

COMMAND_TABLES = (
    ("table_E.1-1", "Command Fields"),
    ("table_E.2-1", "Retired Command Fields"),
)


def is_tag_id(values: list[str]) -> bool:
    return bool(values) and values[0].startswith("(")


class Part7Reader(TableReader):
    """Reads information from PS3.7 in docbook format."""

    def command_fields(self):
        return self.read_tags(COMMAND_TABLES)

    def tag_rows(self, table_id: str, caption: str) -> list[Row]:
        rows = super().tag_rows(table_id, caption)
        # the command field tables of some editions start with the
        # message field and keyword columns
        return [
            [row[2], row[0], row[1]] + row[3:]
            if len(row) == 6 and not is_tag_id(row[0]) and is_tag_id(row[2])
            else row
            for row in rows
        ]

    def bundles(self, origin: Optional[str] = None) -> list[ResultBundle]:
        return [self.tag_bundle("command tags", self.command_fields(), origin)]
