import argparse
import logging
import sys
from collections.abc import Sequence

from dicom_spec_extractor.command_line_utils import (
    add_output_args,
    read_document,
    write_bundles,
)
from dicom_spec_extractor.spec_reader.book_reader import BookReader
from dicom_spec_extractor.spec_reader.spec_reader import SpecReaderError


def extract(args: argparse.Namespace) -> int:
    logger = logging.getLogger()
    if not logger.hasHandlers():
        logger.addHandler(logging.StreamHandler(sys.stdout))
    logger.setLevel(logging.DEBUG if args.verbose else logging.INFO)
    reader = BookReader(strict_nesting=not args.lenient)
    try:
        document = read_document(args.xml_file)
        bundles = reader.parse(document, args.origin or args.xml_file)
    except SpecReaderError as e:
        logger.error("Failed to read %s: %s", args.xml_file, e)
        return 1
    if args.output_dir:
        write_bundles(bundles, args.output_dir)
    else:
        for bundle in bundles:
            print(f"// {bundle.name} ({bundle.origin})")
            print(bundle.data)
    return 0


def main(args: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extracts dictionary information from a DICOM standard "
        "part in docbook format"
    )
    parser.add_argument(
        "xml_file",
        help="Path of the docbook file (e.g. part06.xml)",
    )
    parser.add_argument(
        "--origin",
        help="Origin of the file stored with the results "
        "(defaults to the file path)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Ignore sequence items nested deeper than two levels "
        "instead of failing",
        default=False,
    )
    add_output_args(parser)
    return extract(parser.parse_args(args))


if __name__ == "__main__":
    sys.exit(main())
