"""tagtrail command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``tagtrail`` script).
"""

from tagtrail.cli.main import cli

__all__ = ["cli"]
