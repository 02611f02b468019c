"""atuin_z - frecency-based directory jumping backed by Atuin shell history.

This package provides the ranking engine and the `atuin-z` command-line tool:
it reads the Atuin history database read-only, ranks the directories commands
were run in, and prints the best match for a shell wrapper to `cd` into.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
