import logging
import re

import pytest

from dicom_spec_extractor.spec_reader.records import (
    ModuleDefinition,
    Tag,
    Uid,
    Version,
    module_attribute_from_row,
    module_definition_from_row,
    tag_from_row,
    uid_from_row,
    vr_from_row,
    vr_type_from_definition,
)
from dicom_spec_extractor.spec_reader.spec_reader import (
    MalformedModuleRowError,
    MalformedTagRowError,
    MalformedUidRowError,
    VersionFormatError,
)


def tag_row(tag_id, *values):
    return [[tag_id]] + [[v] if v else [] for v in values]


class TestTagFromRow:
    @pytest.mark.parametrize(
        "tag_id",
        ["(0008,0005)", "( 0008, 0005 )", "(0008,\u200b0005)", "(0008 ,0005)"],
    )
    def test_tag_id_variants(self, tag_id):
        tag = tag_from_row(
            tag_row(tag_id, "Specific Character Set", "SpecificCharacterSet", "CS", "1-n")
        )
        assert (tag.group, tag.element) == ("0008", "0005")
        assert re.match(r"^[0-9A-F]{8}$", tag.group + tag.element)

    def test_six_columns(self):
        tag = tag_from_row(
            tag_row("(0008,0001)", "Length to End", "LengthToEnd", "UL", "1", "RET")
        )
        assert tag == Tag("0008", "0001", "LengthToEnd", "UL", "1", "RET")

    def test_missing_optional_values(self):
        tag = tag_from_row(tag_row("(0018,9445)", "", "", "", ""))
        assert tag == Tag("0018", "9445", "", "", "", "")

    def test_wildcards_are_kept(self):
        tag = tag_from_row(tag_row("(60xx,0010)", "Overlay Rows", "OverlayRows", "US", "1"))
        assert tag.key == ("60xx", "0010")

    @pytest.mark.parametrize("nr_columns", [0, 4, 7])
    def test_wrong_column_count(self, nr_columns):
        with pytest.raises(MalformedTagRowError):
            tag_from_row([["(0008,0005)"]] * nr_columns)

    @pytest.mark.parametrize(
        "tag_id", ["00080005", "(00G8,0001)", "(0008,00Z1)", "(008,0001)", "(0008,)"]
    )
    def test_invalid_tag_id(self, tag_id):
        with pytest.raises(MalformedTagRowError):
            tag_from_row(tag_row(tag_id, "Name", "Keyword", "CS", "1"))

    def test_ambiguous_value(self, caplog):
        row = tag_row("(0008,0005)", "Name", "Keyword", "CS", "1")
        row[3] = ["CS", "SH"]
        with caplog.at_level(logging.WARNING):
            tag = tag_from_row(row)
        assert tag.vr == "CS"
        assert "dropping ['SH']" in caplog.text


class TestUidFromRow:
    def test_matching_type(self):
        row = [
            ["1.2.840.10008.1.2"],
            ["Implicit VR Little Endian: Default Transfer Syntax for DICOM"],
            ["ImplicitVRLittleEndian"],
            ["Transfer Syntax"],
            ["PS3.5"],
        ]
        assert uid_from_row(row, "Transfer Syntax") == Uid(
            "1.2.840.10008.1.2",
            "Implicit VR Little Endian: Default Transfer Syntax for DICOM",
        )

    def test_other_type(self):
        row = [["1.2.840.10008.1.1"], ["Verification SOP Class"], ["SOP Class"], ["PS3.4"]]
        assert uid_from_row(row, "Transfer Syntax") is None
        assert uid_from_row(row, "SOP Class").value == "1.2.840.10008.1.1"

    def test_zero_width_spaces_in_uid(self):
        row = [
            ["1.2.840.10008.5.\u200b1.\u200b4.\u200b1.\u200b1.\u200b2"],
            ["CT Image Storage"],
            ["SOP Class"],
            ["PS3.4"],
        ]
        assert uid_from_row(row, "SOP Class").value == "1.2.840.10008.5.1.4.1.1.2"

    @pytest.mark.parametrize("nr_columns", [3, 6])
    def test_wrong_column_count(self, nr_columns):
        with pytest.raises(MalformedUidRowError):
            uid_from_row([["SOP Class"]] * nr_columns, "SOP Class")


@pytest.mark.parametrize(
    "definition,vr_type",
    [
        ("A string of characters with leading and trailing spaces", "string"),
        ("A character string that may contain one or more paragraphs.", "string"),
        ("An octet-stream where the encoding of the contents is unknown.", "Uint8"),
        ("Signed binary integer 16 bits long in 2's complement form.", "Int16"),
        ("Unsigned binary integer 32 bits long.", "Uint32"),
        ("Signed binary integer 64 bits long.", "Int64"),
        (
            "Single precision binary floating point number represented in "
            "IEEE 754:1985 32-bit Floating Point Number Format.",
            "Float32",
        ),
        (
            "Double precision binary floating point number represented in "
            "IEEE 754:1985 64-bit Floating Point Number Format.",
            "Float64",
        ),
        ("A stream of 16-bit words where the encoding is specified.", "Uint16"),
        ("A stream of 64-bit words where the encoding is specified.", "Uint64"),
        ("A stream of 32-bit IEEE 754:1985 floating point words.", "Float32"),
        ("A stream of 64-bit IEEE 754:1985 floating point words.", "Float64"),
        (
            "Ordered pair of 16-bit unsigned integers that is the value "
            "of a Data Element Tag.",
            None,
        ),
        ("Value is a Sequence of zero or more Items", None),
    ],
)
def test_vr_type_from_definition(definition, vr_type):
    assert vr_type_from_definition(definition) == vr_type


class TestVrFromRow:
    def test_code_and_name_in_separate_paras(self):
        vr = vr_from_row(
            [
                ["US", "Unsigned Short"],
                ["Unsigned binary integer 16 bits long."],
                ["not applicable"],
                ["2 bytes fixed"],
            ]
        )
        assert (vr.code, vr.name, vr.type) == ("US", "Unsigned Short", "Uint16")

    def test_code_and_name_in_one_para(self):
        vr = vr_from_row(
            [["AE Application Entity"], ["A string of characters"], ["Default"], ["16"]]
        )
        assert (vr.code, vr.name, vr.type) == ("AE", "Application Entity", "string")

    def test_unresolved_type(self, caplog):
        with caplog.at_level(logging.INFO):
            vr = vr_from_row(
                [["SQ", "Sequence of Items"], ["Value is a Sequence"], [], []]
            )
        assert vr.type is None
        assert "Could not resolve type for VR SQ" in caplog.text


class TestModuleDefinitionFromRow:
    def test_row_with_information_entity(self):
        row = [["Patient"], ["Patient"], ['linkend="sect_C.7.1.1"'], ["M"]]
        assert module_definition_from_row(row) == ModuleDefinition(
            "Patient", "sect_C.7.1.1", "M"
        )

    def test_conditional_row(self):
        row = [
            ["Contrast/Bolus"],
            ['linkend="sect_C.7.6.4"'],
            ["C - Required if contrast media was used in this image"],
        ]
        definition = module_definition_from_row(row)
        assert definition.usage == "C"
        assert definition.condition == "Required if contrast media was used in this image"

    def test_unexpected_usage(self, caplog):
        row = [["Module"], ['linkend="sect_C.1"'], ["X"]]
        definition = module_definition_from_row(row)
        assert definition.usage == "X"
        assert "Unexpected usage 'X'" in caplog.text

    def test_missing_reference(self):
        with pytest.raises(MalformedModuleRowError):
            module_definition_from_row([["Module"], ["C.1"], ["M"]])

    def test_wrong_column_count(self):
        with pytest.raises(MalformedModuleRowError):
            module_definition_from_row([["Module"], ['linkend="sect_C.1"']])


class TestModuleAttributeFromRow:
    def test_regular_attribute(self):
        attribute = module_attribute_from_row(
            [[">Patient's Name"], ["(0010,0010)"], ["2"], ["Patient's full name."]],
            "Patient's Name",
        )
        assert attribute.name == "Patient's Name"
        assert attribute.tag == "(0010,0010)"
        assert attribute.type == "2"
        assert attribute.desc == "Patient's full name."
        assert attribute.enum is None
        assert attribute.condition is None
        assert attribute.items is None

    def test_enum_and_condition(self):
        attribute = module_attribute_from_row(
            [
                ["Quality Control Subject"],
                ["(0010,0200)"],
                ["1C"],
                [
                    "Indicates whether the subject is a quality control phantom.",
                    "enum=YES|NO;",
                    "Required if the subject is a phantom. May be present otherwise.",
                ],
            ],
            "Quality Control Subject",
        )
        assert attribute.enum == ["YES", "NO"]
        assert attribute.condition == "Required if the subject is a phantom."
        assert "enum=" not in attribute.desc

    def test_unexpected_type(self, caplog):
        attribute = module_attribute_from_row(
            [["Name"], ["(0010,0010)"], ["4"], ["Description"]], "Name"
        )
        assert attribute.type == "4"
        assert "Unexpected type '4'" in caplog.text

    def test_wrong_column_count(self):
        with pytest.raises(MalformedModuleRowError):
            module_attribute_from_row([["Name"], ["(0010,0010)"], ["2"]], "Name")


@pytest.mark.parametrize(
    "text,year,letter",
    [("2020a", 2020, "a"), (" 2019e ", 2019, "e"), ("2014", 2014, "")],
)
def test_version(text, year, letter):
    version = Version.from_string(text)
    assert (version.year, version.letter) == (year, letter)


@pytest.mark.parametrize("text", ["", "20a", "2020ab", "current"])
def test_invalid_version(text):
    with pytest.raises(VersionFormatError):
        Version.from_string(text)
