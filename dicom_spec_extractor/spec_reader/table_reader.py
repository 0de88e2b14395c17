from typing import Optional

from dicom_spec_extractor.spec_reader.enum_parser import EnumParser
from dicom_spec_extractor.spec_reader.records import (
    ResultBundle,
    Tag,
    Version,
    tag_from_row,
)
from dicom_spec_extractor.spec_reader.spec_reader import (
    ElementTree,
    NoRecordsError,
    SpecReader,
)
from dicom_spec_extractor.spec_reader.table_parser import Row, TableParser
from dicom_spec_extractor.spec_reader.normalizer import normalize_tags, render_tags


class TableReader(SpecReader):
    """Base for the readers of a single part of the standard.

    Subclasses implement `bundles()`, which returns the extracted
    information of the part.
    """

    def __init__(
        self, root: ElementTree.Element, version: Optional[Version] = None
    ) -> None:
        super().__init__(root)
        self.version = version
        self.enum_parser = EnumParser(self.find_by_id)
        self.table_parser = TableParser(self.enum_parser)

    def bundles(self, origin: Optional[str] = None) -> list[ResultBundle]:
        raise NotImplementedError

    def table_rows(
        self, table_id: str, caption: str, mode: str = "exact"
    ) -> list[Row]:
        """Return the non-empty rows of the table with the given id after
        checking its caption."""
        return self.non_empty_rows(self.get_checked(table_id, caption, mode), caption)

    def non_empty_rows(self, table: ElementTree.Element, caption: str) -> list[Row]:
        rows = []
        for row in self.table_parser.rows(table):
            if not row:
                self.logger.warning("Empty row in table '%s'", caption)
                continue
            rows.append(row)
        return rows

    def read_tags(self, tables: tuple[tuple[str, str], ...]) -> list[Tag]:
        """Return the tags of the given (table id, caption) registry tables.

        Raises
        ------
        NoRecordsError
            If the tables contain no tags.
        """
        tags = []
        for table_id, caption in tables:
            tags.extend(tag_from_row(row) for row in self.tag_rows(table_id, caption))
        if not tags:
            raise NoRecordsError("Empty tags in " + ", ".join(t[0] for t in tables))
        return tags

    def tag_rows(self, table_id: str, caption: str) -> list[Row]:
        return self.table_rows(table_id, caption)

    def tag_bundle(
        self, name: str, tags: list[Tag], origin: Optional[str]
    ) -> ResultBundle:
        return ResultBundle(
            name=name,
            origin=origin,
            raw=tags,
            data=render_tags(normalize_tags(tags)),
            data_format="txt",
        )
