"""
Shared plumbing for the archive tools

- logging_setup: JSON line logging on stderr
- config: YAML runtime parameters (config/params.yaml) merged over defaults
- errors: ArchiveError taxonomy shared by storage, archive and verifier
"""
