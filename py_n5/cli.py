import argparse
import json
import logging
import sys

import numpy as np

from .errors import N5Error
from .reader_httpx import N5HttpReader


def _exists(n5: N5HttpReader, args: argparse.Namespace) -> int:
    found = n5.exists(args.path)
    print("true" if found else "false")
    return 0 if found else 1


def _attributes(n5: N5HttpReader, args: argparse.Namespace) -> int:
    print(json.dumps(n5.get_attributes(args.path), indent=2))
    return 0


def _block(n5: N5HttpReader, args: argparse.Namespace) -> int:
    dataset_attributes = n5.get_dataset_attributes(args.path)
    if dataset_attributes is None:
        print(f"{args.path} is not a dataset", file=sys.stderr)
        return 1

    block = n5.read_block(args.path, dataset_attributes, args.grid_position)
    print(f"Grid position: {list(block.grid_position)}")
    print(f"Block size: {list(block.size)}")
    print(f"Elements: {block.num_elements}")
    print(f"Data type: {block.data.dtype}")
    with np.printoptions(threshold=args.show, edgeitems=3):
        print(block.as_array())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-n5", description="Inspect an N5 container served over HTTP."
    )
    parser.add_argument("group_url", type=str, help="Base URL of the N5 container.")
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=N5HttpReader.DEFAULT_CONNECT_TIMEOUT,
        help="Seconds to wait for a connection.",
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=N5HttpReader.DEFAULT_READ_TIMEOUT,
        help="Seconds to wait for response data.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every request."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    exists_parser = subparsers.add_parser(
        "exists", help="Check whether a group or dataset exists."
    )
    exists_parser.add_argument("path", type=str)
    exists_parser.set_defaults(func=_exists)

    attributes_parser = subparsers.add_parser(
        "attributes", help="Print the attributes of a group or dataset."
    )
    attributes_parser.add_argument("path", type=str)
    attributes_parser.set_defaults(func=_attributes)

    block_parser = subparsers.add_parser("block", help="Read one block of a dataset.")
    block_parser.add_argument("path", type=str)
    block_parser.add_argument("grid_position", type=int, nargs="+")
    block_parser.add_argument(
        "--show",
        type=int,
        default=1000,
        help="Print the full block if it has at most this many elements.",
    )
    block_parser.set_defaults(func=_block)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with N5HttpReader(
        args.group_url,
        connect_timeout=args.connect_timeout,
        read_timeout=args.read_timeout,
    ) as n5:
        try:
            return args.func(n5, args)
        except N5Error as e:
            print(f"\nAn error occurred: {e}", file=sys.stderr)
            return 2


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
