import argparse
import logging
from pathlib import Path

from dicom_spec_extractor.spec_reader.records import ResultBundle
from dicom_spec_extractor.spec_reader.spec_reader import (
    ElementTree,
    SpecReaderFileError,
)


def add_output_args(parser: argparse.ArgumentParser) -> None:
    """Add output related arguments to argument parser."""
    parser.add_argument(
        "--output-dir",
        "-o",
        help="Directory to write the results to - "
        "if not given, the results are printed",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Outputs diagnostic information"
    )


def read_document(path: str | Path):
    """Parse the docbook file at `path`."""
    path = Path(path)
    if not path.exists():
        raise SpecReaderFileError(f"Missing docbook file {path}")
    try:
        with open(path, "rb") as f:
            return ElementTree.parse(f)
    except ElementTree.ParseError as e:
        raise SpecReaderFileError(f"Parse error in docbook file {path}: {e}")


def bundle_file_name(bundle: ResultBundle) -> str:
    return "-".join(bundle.name.split()) + "." + bundle.data_format


def write_bundles(bundles: list[ResultBundle], output_dir: str | Path) -> list[Path]:
    """Write the data of each bundle into a file in `output_dir`."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for bundle in bundles:
        path = output_dir / bundle_file_name(bundle)
        with open(path, "w", encoding="utf8") as f:
            f.write(bundle.data)
        logging.getLogger().info("Written %s to %s", bundle.name, path)
        paths.append(path)
    return paths
