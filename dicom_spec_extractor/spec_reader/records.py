"""
Records extracted from the DICOM standard and the builders that create
them from table rows as returned by `TableParser.rows()`.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from dicom_spec_extractor.spec_reader.enum_parser import decode_enums
from dicom_spec_extractor.spec_reader.spec_reader import (
    MalformedModuleRowError,
    MalformedTagRowError,
    MalformedUidRowError,
    MalformedRowError,
    VersionFormatError,
    cleaned_value,
)
from dicom_spec_extractor.spec_reader.table_parser import Row, linkend_from

USAGES = ("M", "C", "U")
ATTRIBUTE_TYPES = ("1", "1C", "2", "2C", "3")

# 4 hex digits, "x" standing for any digit in repeating groups and elements
tag_part_regex = re.compile(r"[0-9A-Fa-fx]{4}")


@dataclass(frozen=True)
class Version:
    year: int
    letter: str

    version_regex = re.compile(r"^(\d{4})([a-z]?)$")

    @classmethod
    def from_string(cls, text: str) -> "Version":
        """Create a version from a string like '2020a'."""
        match = cls.version_regex.match(text.strip())
        if not match:
            raise VersionFormatError(f"Unexpected DICOM standard version: '{text}'")
        return cls(int(match.group(1)), match.group(2))

    def __str__(self) -> str:
        return f"{self.year}{self.letter}"


@dataclass(frozen=True)
class Tag:
    group: str
    element: str
    keyword: str
    vr: str
    vm: str
    retired: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return self.group, self.element


@dataclass(frozen=True)
class Uid:
    value: str
    name: str


@dataclass(frozen=True)
class Vr:
    code: str
    name: str
    type: Optional[str]


@dataclass(frozen=True)
class ModuleDefinition:
    module: str
    reference: str
    usage: str
    condition: Optional[str] = None


@dataclass
class ModuleAttribute:
    name: str
    tag: str
    type: str
    desc: str
    enum: Optional[list[str]] = None
    condition: Optional[str] = None
    items: Optional[list["ModuleAttribute"]] = None


@dataclass
class IodDescription:
    name: str
    modules: list[ModuleDefinition]
    attributes: dict[str, list[ModuleAttribute]] = field(default_factory=dict)


@dataclass(frozen=True)
class ResultBundle:
    name: str
    origin: Optional[str]
    raw: Any
    data: str
    data_format: str = "json"


def first_value(values: list[str], column: str = "") -> str:
    """Return the first value of a cell, or an empty string for empty cells.

    Additional values are logged and dropped.
    """
    if len(values) > 1:
        logging.getLogger().warning(
            "Multiple values in %s cell, using '%s', dropping %s",
            column or "table",
            values[0],
            values[1:],
        )
    return values[0] if values else ""


def _check_columns(row: Row, expected: tuple[int, ...], error_class) -> None:
    if len(row) not in expected:
        raise error_class(expected, row)


def tag_from_row(row: Row) -> Tag:
    """Create a tag from a registry row.

    The columns are Tag, Name, Keyword, VR, VM and optionally a retired note.
    """
    _check_columns(row, (5, 6), MalformedTagRowError)
    tag_id = "".join(cleaned_value(first_value(row[0], "tag")).split())
    group_part, sep, element_part = tag_id.partition(",")
    group = group_part.lstrip("(")[:4]
    element = element_part[:4]
    if not (
        sep
        and tag_part_regex.fullmatch(group)
        and tag_part_regex.fullmatch(element)
    ):
        raise MalformedTagRowError((5, 6), row)
    return Tag(
        group=group,
        element=element,
        keyword=first_value(row[2], "keyword"),
        vr=first_value(row[3], "VR"),
        vm=first_value(row[4], "VM"),
        retired=first_value(row[5], "retired") if len(row) == 6 else "",
    )


def uid_from_row(row: Row, uid_type: str) -> Optional[Uid]:
    """Create a UID from a UID registry row if it has the given UID type.

    The columns are UID Value, UID Name, UID Keyword (only since 2020d),
    UID Type and Part. Rows of other UID types are ignored.
    """
    _check_columns(row, (4, 5), MalformedUidRowError)
    if uid_type not in first_value(row[-2], "UID type"):
        return None
    # in PS3.6 xml there are multiple zero width spaces inside the UIDs
    return Uid(
        value="".join(cleaned_value(first_value(row[0], "UID value")).split()),
        name=first_value(row[1], "UID name"),
    )


def _int_type(match: re.Match) -> str:
    prefix = "Int" if match.group(1).lower() == "signed" else "Uint"
    return f"{prefix}{match.group(2)}"


# ordered list of (pattern, type creator) used to find the primitive type
# of a VR from its definition - the first match wins
VR_TYPE_EXTRACTORS: list[tuple[re.Pattern, Callable[[re.Match], str]]] = [
    (
        re.compile(r"\b(?:character string|string of characters)\b", re.I),
        lambda match: "string",
    ),
    (re.compile(r"\boctet[- ]stream\b", re.I), lambda match: "Uint8"),
    (re.compile(r"\b(signed|unsigned) binary integer (\d+) bits long", re.I), _int_type),
    (
        re.compile(r"IEEE 754:1985 (\d+)-bit Floating Point Number"),
        lambda match: f"Float{match.group(1)}",
    ),
    (
        re.compile(r"\bstream of (\d+)-bit words\b", re.I),
        lambda match: f"Uint{match.group(1)}",
    ),
    (
        re.compile(r"\bstream of (\d+)-bit IEEE 754:1985 floating point words", re.I),
        lambda match: f"Float{match.group(1)}",
    ),
]


def vr_type_from_definition(definition: str) -> Optional[str]:
    """Return the primitive type described by a VR definition, or `None`."""
    for pattern, type_creator in VR_TYPE_EXTRACTORS:
        match = pattern.search(definition)
        if match:
            return type_creator(match)
    return None


def vr_from_row(row: Row) -> Vr:
    """Create a VR catalogue entry from a row of the VR table.

    The columns are VR Name (code and name), Definition, Character
    Repertoire and Length of Value.
    """
    _check_columns(row, (4,), MalformedRowError)
    if len(row[0]) > 1:
        code, name = row[0][0], row[0][1]
    else:
        code, _, name = first_value(row[0], "VR").partition(" ")
    definition = " ".join(row[1])
    vr_type = vr_type_from_definition(definition)
    if vr_type is None:
        logging.getLogger().info("Could not resolve type for VR %s", code)
    return Vr(code=code, name=name.strip(), type=vr_type)


def _split_usage(text: str) -> tuple[str, Optional[str]]:
    usage, _, condition = text.partition(" - ")
    usage = usage.strip()
    if usage not in USAGES:
        logging.getLogger().warning("Unexpected usage '%s'", usage)
    return usage, condition.strip() or None


def module_definition_from_row(row: Row) -> ModuleDefinition:
    """Create a module definition from a row of an IOD module table.

    The columns are IE, Module, Reference and Usage, the IE column being
    present only in the first row of an IE (it spans the following rows).
    Functional group macro tables have no IE column.
    """
    _check_columns(row, (3, 4), MalformedModuleRowError)
    if len(row) == 4:
        row = row[1:]
    reference = linkend_from(" ".join(row[1]))
    if reference is None:
        raise MalformedModuleRowError((3, 4), row)
    usage, condition = _split_usage(" ".join(row[2]))
    return ModuleDefinition(
        module=first_value(row[0], "module"),
        reference=reference,
        usage=usage,
        condition=condition,
    )


condition_regex = re.compile(r"\b(Required (?:if|when|only if) [^.]*(?:\.\d[^.]*)*\.?)")


def condition_from_text(text: str) -> Optional[str]:
    match = condition_regex.search(text)
    return match.group(1).strip() if match else None


def module_attribute_from_row(row: Row, name: str) -> ModuleAttribute:
    """Create a module attribute from a row of a module attribute table.

    The columns are Attribute Name, Tag, Type and Attribute Description.
    `name` is the attribute name with the sequence nesting markers removed.
    """
    _check_columns(row, (4,), MalformedModuleRowError)
    attribute_type = first_value(row[2], "type")
    if attribute_type not in ATTRIBUTE_TYPES:
        logging.getLogger().warning(
            "Unexpected type '%s' for attribute '%s'", attribute_type, name
        )
    desc, enum = decode_enums(" ".join(row[3]))
    condition = None
    if attribute_type in ("1C", "2C"):
        condition = condition_from_text(desc)
    return ModuleAttribute(
        name=name,
        tag=cleaned_value("".join(first_value(row[1], "tag").split())),
        type=attribute_type,
        desc=desc,
        enum=enum or None,
        condition=condition,
    )
