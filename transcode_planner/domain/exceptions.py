"""
Defines custom exception types for the Transcode Planner.

Planning either produces a complete, ordered command list or fails with one of
these exceptions. Callers can catch specific types such as `FormatException`
or `TempDirectoryException` and report them verbatim; nothing in the planner
catches and suppresses them.

All custom exceptions inherit from the base `TranscodePlannerException`.
"""


class TranscodePlannerException(Exception):
    """Base class for all custom exceptions in the Transcode Planner."""

    pass


# --- Configuration / Format Exceptions ---
class ConfigException(TranscodePlannerException):
    """
    Raised when the transcode configuration or a job description is invalid.

    Examples are an unknown encoder or container name, a malformed bitrate
    section, or encoder zones that overlap or are out of order.
    """

    pass


class FormatException(TranscodePlannerException):
    """
    Raised when a source stream carries a tag the encoder arguments cannot express.

    The typical case is a color primaries, transfer characteristics or color
    matrix value outside the supported tables.
    """

    pass


# --- Temporary File Exceptions ---
class TempFileException(TranscodePlannerException):
    """Base class for temporary directory and temporary file errors."""

    pass


class TempDirectoryException(TempFileException):
    """
    Raised when the temporary directory cannot be created.

    Name collisions are retried with the next numeric suffix; any other OS
    error ends up here and aborts the run.
    """

    pass


class NoTempDirectoryException(TempFileException):
    """Raised when a temporary path is requested but no work directory is configured."""

    pass


# --- MediaFile / Probe Specific Exceptions ---
class MediaFileException(TranscodePlannerException):
    """
    Raised when the video stream metadata of a source file cannot be probed.
    """

    pass

