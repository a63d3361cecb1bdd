from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class GlobalOptions:
    """Holds process-wide CLI options."""

    verbose: int = 0
    quiet: bool = False


GLOBAL_OPTIONS = GlobalOptions()
