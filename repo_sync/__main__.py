"""Allow running as ``python -m repo_sync``."""

from .main import cli

cli(prog_name="repo-sync")
