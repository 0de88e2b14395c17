"""
Part3Reader collects DICOM Information Object Definition information
for specific IODs, including the attributes of all modules with the
included macros resolved.
The information is taken from PS3.3 in docbook format as provided by ACR NEMA.
"""

import copy
import enum
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from dicom_spec_extractor.spec_reader.records import (
    IodDescription,
    ModuleAttribute,
    ModuleDefinition,
    ResultBundle,
    module_attribute_from_row,
    module_definition_from_row,
)
from dicom_spec_extractor.spec_reader.serializer import dump_records
from dicom_spec_extractor.spec_reader.spec_reader import (
    CyclicReferenceError,
    ElementTree,
    NoRecordsError,
    UnexpectedRowError,
    UnresolvedReferenceError,
    UnsupportedNestingError,
)
from dicom_spec_extractor.spec_reader.table_parser import Row, linkend_from
from dicom_spec_extractor.spec_reader.table_reader import TableReader


@dataclass(frozen=True)
class IodTable:
    name: str
    table_id: str
    caption: str
    group_macros_table_id: Optional[str] = None
    group_macros_caption: Optional[str] = None


DEFAULT_IODS = (
    IodTable("CT Image IOD", "table_A.3-1", "CT Image IOD Modules"),
    IodTable("MR Image IOD", "table_A.4-1", "MR Image IOD Modules"),
    IodTable(
        "Enhanced CT Image IOD",
        "table_A.38-1",
        "Enhanced CT Image IOD Modules",
        "table_A.38-2",
        "Enhanced CT Image Functional Group Macros",
    ),
)

# rows spanning the whole table used as section headers in macro tables
KNOWN_SECTION_HEADERS = (
    "BASIC CODED ENTRY ATTRIBUTES",
    "ENHANCED ENCODING MODE",
)

func_group_include_regex = re.compile(r"^Include .*Functional Group Macros")


class NestingLevel(enum.IntEnum):
    Top = 0
    Nested = 1
    DoubleNested = 2


class MacroCache:
    """Resolved attribute lists per table id.

    The cache is created per parse. An entry is only added after the
    referenced table has been completely resolved; the ids of the tables
    currently being resolved are used to detect cyclic references.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[ModuleAttribute]] = {}
        self._visiting: list[str] = []

    def __contains__(self, ref_id: str) -> bool:
        return ref_id in self._entries

    def __getitem__(self, ref_id: str) -> list[ModuleAttribute]:
        return self._entries[ref_id]

    def __len__(self) -> int:
        return len(self._entries)

    @contextmanager
    def visiting(self, ref_id: str) -> Iterator[None]:
        if ref_id in self._visiting:
            raise CyclicReferenceError(self._visiting + [ref_id])
        self._visiting.append(ref_id)
        try:
            yield
        finally:
            self._visiting.pop()

    def resolve(
        self, ref_id: str, parse: Callable[[], list[ModuleAttribute]]
    ) -> list[ModuleAttribute]:
        if ref_id not in self._entries:
            with self.visiting(ref_id):
                attributes = parse()
            self._entries[ref_id] = attributes
        return self._entries[ref_id]


class NestingState:
    """Tracks where the attributes of the current row belong to.

    `parents[0]` is the last top level attribute, which receives the
    attributes of `>` rows; `parents[1]` is the last nested attribute, which
    receives the attributes of `>>` rows.
    """

    def __init__(self, table_id: str) -> None:
        self.table_id = table_id
        self.attributes: list[ModuleAttribute] = []
        self.level = NestingLevel.Top
        self.parents: list[Optional[ModuleAttribute]] = [None, None]

    def target(self, level: NestingLevel, name: str) -> list[ModuleAttribute]:
        if level == NestingLevel.Top:
            return self.attributes
        parent = self.parents[level - 1]
        if parent is None:
            raise UnexpectedRowError(self.table_id, name)
        if parent.items is None:
            parent.items = []
        return parent.items

    def add(self, attribute: ModuleAttribute, level: NestingLevel) -> None:
        self.target(level, attribute.name).append(attribute)
        if level < NestingLevel.DoubleNested:
            self.parents[level] = attribute
        for deeper in range(level + 1, NestingLevel.DoubleNested):
            self.parents[deeper] = None
        self.level = level

    def splice(
        self, attributes: list[ModuleAttribute], level: NestingLevel, name: str
    ) -> None:
        self.target(level, name).extend(copy.deepcopy(attributes))
        for deeper in range(level, NestingLevel.DoubleNested):
            self.parents[deeper] = None
        self.level = level


def split_nesting(name: str) -> tuple[int, str]:
    """Return the number of leading `>` markers and the name without them."""
    stripped = name.lstrip(">")
    return len(name) - len(stripped), stripped.strip()


class Part3Reader(TableReader):
    """Reads information from PS3.3 in docbook format."""

    def __init__(
        self,
        root,
        version=None,
        iods: tuple[IodTable, ...] = DEFAULT_IODS,
        strict_nesting: bool = True,
    ):
        super(Part3Reader, self).__init__(root, version)
        self.iods = iods
        self.strict_nesting = strict_nesting

    def iod_description(
        self, iod: IodTable, cache: Optional[MacroCache] = None
    ) -> IodDescription:
        """Return the modules of the given IOD with their resolved attributes.

        The module attributes are found in the section each module row
        references. Functional group macros listed in the functional group
        table of the IOD are inserted where a module includes them.
        """
        if cache is None:
            cache = MacroCache()
        group_macro_attributes = None
        if iod.group_macros_table_id:
            group_macro_attributes = []
            for macro in self.module_definitions(
                iod.group_macros_table_id, iod.group_macros_caption
            ):
                group_macro_attributes.extend(
                    self.resolve_macro(macro.reference, cache)
                )
        modules = self.module_definitions(iod.table_id, iod.caption)
        description = IodDescription(name=iod.name, modules=modules)
        for module in modules:
            with cache.visiting(module.reference):
                description.attributes[module.reference] = self.module_attributes(
                    module.reference, cache, group_macro_attributes
                )
        return description

    def module_definitions(
        self, table_id: str, caption: str
    ) -> list[ModuleDefinition]:
        definitions = [
            module_definition_from_row(row) for row in self.table_rows(table_id, caption)
        ]
        if not definitions:
            raise NoRecordsError(f"Empty modules in {table_id}")
        return definitions

    def resolve_macro(self, ref_id: str, cache: MacroCache) -> list[ModuleAttribute]:
        """Return the attributes of the referenced macro table, parsing it
        only if it is not already in the cache."""
        if ref_id in cache:
            self.logger.debug("Using cached attributes of %s", ref_id)
        return cache.resolve(ref_id, lambda: self.module_attributes(ref_id, cache))

    def attribute_table(self, ref_id: str) -> Optional[ElementTree.Element]:
        node = self.find_by_id(ref_id)
        if node is None:
            raise UnresolvedReferenceError(f"Failed to lookup reference {ref_id}")
        if ref_id.startswith("table_"):
            return node
        # a module section contains the attribute table
        return node.find(f".//{self.docbook_ns}table")

    def module_attributes(
        self,
        ref_id: str,
        cache: MacroCache,
        group_macro_attributes: Optional[list[ModuleAttribute]] = None,
    ) -> list[ModuleAttribute]:
        """Return the attributes defined in the referenced table or section.

        Included macros are resolved recursively and inserted in place,
        sequence items are collected in the `items` of the sequence
        attribute.
        """
        table = self.attribute_table(ref_id)
        if table is None:
            # it is allowed to have no attributes (example: Raw Data)
            self.logger.debug("No attribute table in %s", ref_id)
            return []
        caption = self._caption_or_id(table, ref_id)
        self.logger.debug("Parsing attributes of %s", ref_id)
        state = NestingState(ref_id)
        for row in self.non_empty_rows(table, caption):
            self._handle_row(row, state, cache, group_macro_attributes)
        return state.attributes

    def _caption_or_id(self, table: ElementTree.Element, ref_id: str) -> str:
        caption_node = self._find(table, ["caption"])
        if caption_node is not None:
            caption = self._find_all_text(caption_node)
            if caption:
                return caption
        return ref_id

    def _handle_row(
        self,
        row: Row,
        state: NestingState,
        cache: MacroCache,
        group_macro_attributes: Optional[list[ModuleAttribute]],
    ) -> None:
        markers, name = split_nesting(" ".join(row[0]))
        if markers > NestingLevel.DoubleNested:
            self._handle_unsupported_nesting(state.table_id, " ".join(row[0]))
            return
        level = NestingLevel(markers)
        if name.startswith("Include"):
            if func_group_include_regex.match(name):
                if group_macro_attributes is None:
                    self.logger.debug(
                        "No functional group macros to include in %s", state.table_id
                    )
                state.splice(group_macro_attributes or [], level, name)
                return
            ref_id = linkend_from(name)
            if ref_id is None:
                raise UnexpectedRowError(state.table_id, name)
            state.splice(self.resolve_macro(ref_id, cache), level, name)
        elif len(row) == 4:
            row = [row[0], row[1], row[2], [self.enum_parser.expand(v) for v in row[3]]]
            state.add(module_attribute_from_row(row, name), level)
        elif name in KNOWN_SECTION_HEADERS:
            self.logger.debug("Ignoring section header '%s' in %s", name, state.table_id)
        else:
            raise UnexpectedRowError(state.table_id, name)

    def _handle_unsupported_nesting(self, table_id: str, name: str) -> None:
        if self.strict_nesting:
            raise UnsupportedNestingError(table_id, name)
        self.logger.error(
            "Unsupported sequence nesting level in %s - ignoring '%s'", table_id, name
        )

    def bundles(self, origin: Optional[str] = None) -> list[ResultBundle]:
        cache = MacroCache()
        bundles = []
        for iod in self.iods:
            description = self.iod_description(iod, cache)
            bundles.append(
                ResultBundle(
                    name=iod.name,
                    origin=origin,
                    raw=description,
                    data=dump_records(description),
                )
            )
        return bundles
