"""Error taxonomy for the install pipeline."""

from __future__ import annotations

from constants import ExitCodes


class RymError(Exception):
    """Base error for rym."""

    exit_code = ExitCodes.FILE_ERROR


class ManifestError(RymError):
    """Dependency manifest is missing, unreadable, or malformed."""

    exit_code = ExitCodes.FILE_ERROR


class ResolutionError(RymError):
    """A coordinate could not be resolved or downloaded."""

    exit_code = ExitCodes.CONNECTION_ERROR


class SynthesisFailure(RymError):
    """Analyzer or compiler could not produce a module descriptor."""


class MergeConflict(RymError):
    """Two delegate contributors carry the same non-service entry.

    Recorded as a diagnostic; the first contributor's entry is kept.
    """

    def __init__(self, entry: str, kept: str, dropped: str):
        super().__init__(f"duplicate entry {entry}: keeping {kept}, skipping {dropped}")
        self.entry = entry
        self.kept = kept
        self.dropped = dropped


class LinkError(RymError):
    """The linker failed to produce a runtime image."""

    exit_code = ExitCodes.LINK_ERROR
