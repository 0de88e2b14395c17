"""
Normalization of the records read from the DICOM dictionary, and their
textual representation.
"""

import logging
import re
from dataclasses import replace

from pydicom.valuerep import VR

from dicom_spec_extractor.spec_reader.records import Tag, Uid
from dicom_spec_extractor.spec_reader.serializer import dump_records

# replacements for the wildcards in repeating groups and elements,
# checked in this order
WILDCARD_SUBSTITUTIONS = (
    # (1010,xxxx) Zonal Map
    ("xxxx", "0004"),
    # (1000,xxx0) - (1000,xxx5) Escape Triplet and following
    ("xxx", "001"),
    # repeating groups like (60xx,3000) and elements like (0020,31xx)
    ("xx", "00"),
    # (0028,04x0) - (0028,04x3) and similar; "0" would give registered
    # elements like (0028,0400) Transform Label
    ("x", "1"),
)

# groups that contain their group length element in the registry
RESERVED_GROUPS = ("0000", "0002")

GROUP_LENGTH_KEYWORD = "GenericGroupLength"

VR_ALIASES = {
    "OB or OW": "ox",
    "OW or OB": "ox",
    "US or SS": "xs",
    "SS or US": "xs",
    "US or SS or OW": "xs",
    "US or OW": "xs",
}

PSEUDO_VRS = ("ox", "xs", "NONE")

uid_comment_regex = re.compile(r"\s*:\s.*$")


def expand_wildcards(value: str) -> str:
    for pattern, literal in WILDCARD_SUBSTITUTIONS:
        if pattern in value:
            value = value.replace(pattern, literal)
    return value


def canonical_vr(vr: str) -> str:
    """Map the VR descriptions used in the dictionary to a single code."""
    if vr.startswith("See Note"):
        return "NONE"
    vr = VR_ALIASES.get(vr, vr)
    if vr not in PSEUDO_VRS and vr not in VR.__members__:
        logging.getLogger().warning("Unknown VR '%s'", vr)
    return vr


def group_length_tag(group: str) -> Tag:
    return Tag(group, "0000", GROUP_LENGTH_KEYWORD, "UL", "1")


def _warn_duplicates(tags: list[Tag]) -> None:
    seen: dict[tuple[str, str], Tag] = {}
    for tag in tags:
        other = seen.setdefault(tag.key, tag)
        if other is not tag:
            logging.getLogger().warning(
                "Duplicate tag (%s,%s): %s and %s",
                tag.group,
                tag.element,
                other.keyword or "<no keyword>",
                tag.keyword or "<no keyword>",
            )


def normalize_tags(tags: list[Tag]) -> list[Tag]:
    """Return the normalized tags.

    Wildcards are replaced, a group length tag is added for each group not
    having one, the tags are sorted by group and element, and the VR
    descriptions are replaced by codes.
    Tags sharing the same group and element are logged and kept.
    Running this on its own result returns the same tags.
    """
    expanded = [
        replace(
            tag,
            group=expand_wildcards(tag.group),
            element=expand_wildcards(tag.element),
        )
        for tag in tags
    ]
    _warn_duplicates(expanded)
    keys = {tag.key for tag in expanded}
    groups = sorted({tag.group for tag in expanded})
    expanded.extend(
        group_length_tag(group)
        for group in groups
        if group not in RESERVED_GROUPS and (group, "0000") not in keys
    )
    expanded.sort(key=lambda tag: tag.key)
    return [replace(tag, vr=canonical_vr(tag.vr)) for tag in expanded]


def normalize_uid_name(name: str) -> str:
    return uid_comment_regex.sub("", name.replace("&amp;", "&")).strip()


def normalize_uids(uids: list[Uid]) -> list[Uid]:
    return [replace(uid, name=normalize_uid_name(uid.name)) for uid in uids]


def _quoted(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_tags(tags: list[Tag]) -> str:
    """Return the tags as text grouped by tag group:

    {
      '0002': {
        '0000': ['UL', '1', 'FileMetaInformationGroupLength'],
        ...
      },
      ...
    }
    """
    groups: dict[str, list[Tag]] = {}
    for tag in tags:
        groups.setdefault(tag.group, []).append(tag)
    group_blocks = []
    for group, group_tags in groups.items():
        lines = [
            f"    {_quoted(tag.element)}: "
            f"[{_quoted(tag.vr)}, {_quoted(tag.vm)}, {_quoted(tag.keyword)}]"
            for tag in group_tags
        ]
        group_blocks.append(
            f"  {_quoted(group)}: {{\n" + ",\n".join(lines) + "\n  }"
        )
    return "{\n" + ",\n".join(group_blocks) + "\n}"


def render_uids(uids: list[Uid]) -> str:
    return dump_records({uid.value: uid.name for uid in uids})
