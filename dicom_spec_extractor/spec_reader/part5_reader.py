"""
Part5Reader collects the DICOM Value Representations and their
primitive types.
The information is taken from PS3.5 in docbook format as provided by ACR NEMA.
"""

import re
from typing import Optional

from pydicom.valuerep import VR

from dicom_spec_extractor.spec_reader.records import ResultBundle, Vr, vr_from_row
from dicom_spec_extractor.spec_reader.serializer import dump_records
from dicom_spec_extractor.spec_reader.spec_reader import NoRecordsError
from dicom_spec_extractor.spec_reader.table_reader import TableReader

VR_TABLE = ("table_6.2-1", "DICOM Value Representations")

# since 2019, the VRs with a 16-bit length are listed in a table caption
SHORT_VL_TABLE = ("table_7.1-2", "Data Element with Explicit VR of")
# before, the VRs with a 32-bit length are only mentioned in the text
LONG_VL_SECTION = ("sect_7.1.2", "Data Element Structure with Explicit VR")
SHORT_VL_TABLE_SINCE = 2019

vr_code_regex = re.compile(r"\b[A-Z]{2}\b")
long_vl_text_regex = re.compile(
    r"for VRs of ((?:[A-Z]{2}(?:,\s*|\s+or\s+|\s+and\s+))*[A-Z]{2})"
)


class Part5Reader(TableReader):
    """Reads information from PS3.5 in docbook format."""

    def __init__(self, root, version=None):
        super(Part5Reader, self).__init__(root, version)
        self._vrs = None

    def vrs(self) -> list[Vr]:
        """Return the VR catalogue in document order.

        VRs without primitive type (e.g. AT, SQ) have the type `None`.
        """
        if self._vrs is None:
            self._vrs = [vr_from_row(row) for row in self.table_rows(*VR_TABLE)]
            if not self._vrs:
                raise NoRecordsError("Empty VRs in " + VR_TABLE[0])
            for vr in self._vrs:
                if vr.code not in VR.__members__:
                    self.logger.warning("VR %s is not known to pydicom", vr.code)
        return self._vrs

    def vr_types(self) -> dict[str, Optional[str]]:
        return {vr.code: vr.type for vr in self.vrs()}

    def uses_short_vl_table(self) -> bool:
        return self.version is None or self.version.year >= SHORT_VL_TABLE_SINCE

    def long_vl_vrs(self) -> list[str]:
        """Return the codes of the VRs with a 32-bit value length field
        in explicit VR encoding."""
        if self.uses_short_vl_table():
            table = self.get_by_id(SHORT_VL_TABLE[0])
            caption = self.check_caption(table, *SHORT_VL_TABLE, mode="contains")
            short_vrs = vr_code_regex.findall(caption.partition(SHORT_VL_TABLE[1])[2])
            codes = [vr.code for vr in self.vrs() if vr.code not in short_vrs]
        else:
            section = self.get_checked(*LONG_VL_SECTION)
            codes = []
            for para in self._findall(section, ["para"]):
                match = long_vl_text_regex.search(self._find_all_text(para))
                if match:
                    codes = vr_code_regex.findall(match.group(1))
                    break
        if not codes:
            raise NoRecordsError("Empty 32-bit length VRs")
        return codes

    def bundles(self, origin: Optional[str] = None) -> list[ResultBundle]:
        vrs = self.vrs()
        long_vl_vrs = self.long_vl_vrs()
        return [
            ResultBundle(
                name="vrs",
                origin=origin,
                raw=vrs,
                data=dump_records({vr.code: vr.type for vr in vrs}),
            ),
            ResultBundle(
                name="vr32bitVL",
                origin=origin,
                raw=long_vl_vrs,
                data=dump_records(long_vl_vrs),
            ),
        ]
