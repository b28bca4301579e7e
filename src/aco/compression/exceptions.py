"""Exceptions raised by the compression pipeline.

Skips are not errors: an ineligible asset yields a skipped
CompressionOutcome. Everything here means a compression attempt was made
and did not complete.
"""

from pathlib import Path


class CompressionError(Exception):
    """Base exception for compression failures.

    All pipeline exceptions inherit from this class, allowing triggers to
    catch every compression failure with a single except clause.
    """


class EncoderConfigurationError(CompressionError):
    """Raised at startup when no usable MP3 encoder is installed."""


class TranscodeError(CompressionError):
    """Raised when the encoder fails to produce an output file.

    Attributes:
        returncode: Encoder exit code, or None if it never exited normally.
        stderr: Tail of the encoder's diagnostic output.
        timed_out: True if the encoder was killed for exceeding its timeout.
    """

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out
        super().__init__(message)


class EncoderUnavailableError(TranscodeError):
    """Raised when the encoder binary cannot be launched."""


class VerificationError(CompressionError):
    """Raised when the encoder exited cleanly but the output is missing or empty."""

    def __init__(self, output_path: Path, message: str | None = None) -> None:
        self.output_path = output_path
        super().__init__(message or f"Encoder output missing or empty: {output_path}")


class MetadataUpdateError(CompressionError):
    """Raised when the asset record could not be pointed at the new file.

    The record is unchanged. The produced file is left on disk as an orphan.

    Attributes:
        asset_id: The asset whose update failed.
        orphan_path: The produced file, or None if it was removed.
    """

    def __init__(
        self, asset_id: int, orphan_path: Path | None, message: str | None = None
    ) -> None:
        self.asset_id = asset_id
        self.orphan_path = orphan_path
        default_msg = f"Failed to update metadata for asset {asset_id}"
        super().__init__(message or default_msg)


class ConcurrentModificationError(MetadataUpdateError):
    """Raised when the asset was replaced by someone else mid-compression.

    The produced file is known to be unreferenced and has been removed, so
    ``orphan_path`` is None.
    """

    def __init__(self, asset_id: int, message: str | None = None) -> None:
        default_msg = f"Asset {asset_id} was modified by another process"
        super().__init__(asset_id, None, message or default_msg)
