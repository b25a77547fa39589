from __future__ import annotations

"""
Command-line entry point.

Examples:
  tile-archive verify data/world.pmtiles
  tile-archive verify https://example.com/tiles/world.pmtiles --log-level DEBUG
  tile-archive verify world.pmtiles --bucket s3://my-tiles?region=eu-west-1 --prefix v2
  tile-archive header data/world.pmtiles
  tile-archive tile data/world.pmtiles 3 4 2 --output 3-4-2.mvt

Exit codes: 0 ok, 1 findings (verify) or missing tile (tile), 2 fatal error.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from archive.reader import DEFAULT_HEADER_FETCH, ArchiveReader
from common.config import load_config, section
from common.errors import ArchiveError
from common.logging_setup import get_logger, setup_logging
from storage.location import normalize_bucket_key, open_bucket
from verifier.engine import verify_archive


log = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("location", help="Archive path, http(s):// URL or s3:// URL")
    common.add_argument("--bucket", default="", help="Explicit bucket root; location is then used verbatim as key")
    common.add_argument("--prefix", default="", help="Key prefix inside the bucket")
    common.add_argument("--config", default=None, help="YAML config (default config/params.yaml)")
    common.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")

    ap = argparse.ArgumentParser(prog="tile-archive", description="Inspect and verify tile archives")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("verify", parents=[common], help="Walk all directories and check archive invariants")
    sub.add_parser("header", parents=[common], help="Print the decoded header as JSON")
    tp = sub.add_parser("tile", parents=[common], help="Fetch one raw tile")
    tp.add_argument("z", type=int)
    tp.add_argument("x", type=int)
    tp.add_argument("y", type=int)
    tp.add_argument("--output", "-o", default="", help="Write tile bytes here (default stdout)")
    return ap


def _open_reader(args, cfg):
    root, key = normalize_bucket_key(args.bucket, args.prefix, args.location)
    bucket = open_bucket(root, prefix=args.prefix if args.bucket else "", config=cfg)
    fetch_len = int(section(cfg, "archive").get("header_fetch_length", DEFAULT_HEADER_FETCH))
    return bucket, ArchiveReader(bucket, key, header_fetch_length=fetch_len)


def _cmd_verify(args, cfg) -> int:
    report = verify_archive(args.location, bucket_url=args.bucket, prefix=args.prefix, config=cfg)
    print(report.render())
    return 0 if report.ok else 1


def _cmd_header(args, cfg) -> int:
    bucket, reader = _open_reader(args, cfg)
    with bucket:
        print(json.dumps(reader.header.to_dict(), indent=2))
    return 0


def _cmd_tile(args, cfg) -> int:
    bucket, reader = _open_reader(args, cfg)
    with bucket:
        data = reader.get_tile(args.z, args.x, args.y)
    if data is None:
        log.warning("tile %d/%d/%d not in archive", args.z, args.x, args.y)
        return 1
    if args.output:
        Path(args.output).write_bytes(data)
    else:
        sys.stdout.buffer.write(data)
    return 0


_COMMANDS = {"verify": _cmd_verify, "header": _cmd_header, "tile": _cmd_tile}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = load_config(args.config)
    setup_logging(args.log_level or section(cfg, "logging").get("level"))
    try:
        return _COMMANDS[args.command](args, cfg)
    except (ArchiveError, ValueError) as e:
        log.error("%s failed: %s", args.command, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
