from __future__ import annotations

"""
Structural verification of a tile archive.

Walks the whole directory tree once and checks what a conformant archive
guarantees: tile ranges inside the data section, gap-free offset order for
clustered archives, header counts, and zoom bounds. Violations are collected
as findings and never stop the walk; only I/O and decode failures do.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pyroaring import BitMap64

from archive.directory import Entry
from archive.header import Header
from archive.reader import DEFAULT_HEADER_FETCH, ArchiveReader
from archive.tileid import tileid_zoom
from archive.traverse import CancelSignal
from common.config import section
from common.logging_setup import get_logger
from storage.base import Bucket
from storage.location import normalize_bucket_key, open_bucket


log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Finding:
    """One invariant violation. `details` carries the compared values."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class VerifyAccumulator:
    """
    Running state of one verification pass, threaded through the walk.

    Attributes:
        header: archive header the entries are checked against.
        offsets: distinct tile-data offsets seen (their count = distinct contents).
        next_offset: expected offset of the next new tile content (clustered only);
            advances by each new content's length, whether or not it was in place.
        findings: collected only; verify_bucket logs them once the walk completed.
    """
    header: Header
    min_tile_id: Optional[int] = None
    max_tile_id: Optional[int] = None
    addressed_tiles: int = 0
    tile_entries: int = 0
    offsets: BitMap64 = field(default_factory=BitMap64)
    next_offset: int = 0
    findings: List[Finding] = field(default_factory=list)

    def report(self, code: str, message: str, **details: Any) -> None:
        f = Finding(code, message, details)
        self.findings.append(f)

    def observe(self, e: Entry) -> None:
        """Per tile-pointer entry: update running totals and check placement."""
        h = self.header
        self.addressed_tiles += e.run_length
        self.tile_entries += 1
        if self.min_tile_id is None or e.tile_id < self.min_tile_id:
            self.min_tile_id = e.tile_id
        if self.max_tile_id is None or e.tile_id > self.max_tile_id:
            self.max_tile_id = e.tile_id

        if e.offset + e.length > h.tile_data_length:
            self.report(
                "tile_outside_data",
                f"entry {_fmt(e)} outside of tile data section (length {h.tile_data_length})",
                tile_id=e.tile_id, offset=e.offset, length=e.length,
                tile_data_length=h.tile_data_length,
            )

        is_new = e.offset not in self.offsets
        if is_new:
            self.offsets.add(e.offset)
        if h.clustered and is_new:
            if e.offset != self.next_offset:
                self.report(
                    "clustered_out_of_order",
                    f"out-of-order entry {_fmt(e)} in clustered archive, expected offset {self.next_offset}",
                    tile_id=e.tile_id, offset=e.offset, expected_offset=self.next_offset,
                )
            self.next_offset += e.length

    def finish(self) -> None:
        """Post-walk checks against header totals and zoom bounds."""
        h = self.header
        if self.addressed_tiles != h.addressed_tiles_count:
            self.report(
                "addressed_tiles_mismatch",
                f"header AddressedTilesCount={h.addressed_tiles_count} but {self.addressed_tiles} tiles addressed",
                header=h.addressed_tiles_count, actual=self.addressed_tiles,
            )
        if self.tile_entries != h.tile_entries_count:
            self.report(
                "tile_entries_mismatch",
                f"header TileEntriesCount={h.tile_entries_count} but {self.tile_entries} tile entries",
                header=h.tile_entries_count, actual=self.tile_entries,
            )
        contents = len(self.offsets)
        if contents != h.tile_contents_count:
            self.report(
                "tile_contents_mismatch",
                f"header TileContentsCount={h.tile_contents_count} but {contents} tile contents",
                header=h.tile_contents_count, actual=contents,
            )

        # no tile entries at all: there is no observed zoom to compare
        if self.min_tile_id is not None and self.max_tile_id is not None:
            zmin = tileid_zoom(self.min_tile_id)
            if zmin != h.min_zoom:
                self.report(
                    "min_zoom_mismatch",
                    f"header MinZoom={h.min_zoom} does not match min tile z {zmin}",
                    header=h.min_zoom, actual=zmin,
                )
            zmax = tileid_zoom(self.max_tile_id)
            if zmax != h.max_zoom:
                self.report(
                    "max_zoom_mismatch",
                    f"header MaxZoom={h.max_zoom} does not match max tile z {zmax}",
                    header=h.max_zoom, actual=zmax,
                )

        if not (h.min_zoom <= h.center_zoom <= h.max_zoom):
            self.report(
                "center_zoom_out_of_range",
                f"header CenterZoom={h.center_zoom} not within MinZoom/MaxZoom ({h.min_zoom}..{h.max_zoom})",
                center_zoom=h.center_zoom, min_zoom=h.min_zoom, max_zoom=h.max_zoom,
            )


def _fmt(e: Entry) -> str:
    return f"(tile_id={e.tile_id} offset={e.offset} length={e.length} run_length={e.run_length})"


@dataclass(slots=True)
class VerifyReport:
    key: str
    header: Header
    findings: List[Finding]
    addressed_tiles: int
    tile_entries: int
    tile_contents: int
    directories_read: int
    elapsed_s: float

    @property
    def ok(self) -> bool:
        return not self.findings

    def codes(self) -> List[str]:
        return [f.code for f in self.findings]

    def render(self) -> str:
        """Human-readable report, one line per finding."""
        lines = [f"Invalid: {f.message}" for f in self.findings]
        status = "valid" if self.ok else f"{len(self.findings)} problem(s)"
        lines.append(
            f"{self.key}: {status}; {self.tile_entries} tile entries, {self.addressed_tiles} addressed tiles, "
            f"{self.tile_contents} tile contents, {self.directories_read} directories"
        )
        lines.append(f"Completed verify in {self.elapsed_s:.3f}s.")
        return "\n".join(lines)


def verify_bucket(
    bucket: Bucket,
    key: str,
    cancel: Optional[CancelSignal] = None,
    header_fetch_length: int = DEFAULT_HEADER_FETCH,
) -> VerifyReport:
    """
    Verify the archive `key` inside an already opened bucket.

    Raises FetchError / DecodeError / OperationCancelled when the tree cannot
    be walked; everything else ends up in the report's findings.
    """
    t0 = time.perf_counter()
    reader = ArchiveReader(bucket, key, cancel=cancel, header_fetch_length=header_fetch_length)
    acc = VerifyAccumulator(reader.header)
    walker = reader.walker()
    nodes = walker.walk(acc.observe)
    acc.finish()
    elapsed = time.perf_counter() - t0

    # a walk that raised above never gets here, so partial passes log nothing
    for f in acc.findings:
        log.warning("Invalid: %s", f.message, extra={"extra": {"code": f.code, **f.details}})

    report = VerifyReport(
        key=key,
        header=acc.header,
        findings=list(acc.findings),
        addressed_tiles=acc.addressed_tiles,
        tile_entries=acc.tile_entries,
        tile_contents=len(acc.offsets),
        directories_read=nodes,
        elapsed_s=elapsed,
    )
    log.info(
        "Completed verify in %.3fs.", elapsed,
        extra={"extra": {"key": key, "findings": len(report.findings), "directories": nodes}},
    )
    return report


def verify_archive(
    location: str,
    bucket_url: str = "",
    prefix: str = "",
    config: Optional[Dict[str, Any]] = None,
    cancel: Optional[CancelSignal] = None,
) -> VerifyReport:
    """Resolve `location`, open its bucket for the duration of the pass, verify."""
    root, key = normalize_bucket_key(bucket_url, prefix, location)
    fetch_len = int(section(config, "archive").get("header_fetch_length", DEFAULT_HEADER_FETCH))
    with open_bucket(root, prefix=prefix if bucket_url else "", config=config) as bucket:
        return verify_bucket(bucket, key, cancel=cancel, header_fetch_length=fetch_len)
