"""
Verifier — structural checks over a whole archive

- engine: VerifyAccumulator / verify_bucket / verify_archive, returning a VerifyReport
  whose findings list every violated invariant (counts, zoom bounds, clustering, ranges)
- cli: `tile-archive verify|header|tile` command-line entry point

Entry point:
    python -m verifier.cli verify data/world.pmtiles
"""
from .engine import Finding, VerifyAccumulator, VerifyReport, verify_archive, verify_bucket

__all__ = ["Finding", "VerifyAccumulator", "VerifyReport", "verify_archive", "verify_bucket"]
