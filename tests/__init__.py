"""
Tile archive test suite

Structure:
- unit/: tile ids, header/directory decoding, storage backends, traversal, verifier, CLI
- integration/: HTTP range reads and end-to-end verification against a local HTTP server
- archive_builder.py: in-memory archive encoder shared by both
"""
