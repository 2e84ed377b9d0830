"""Exception hierarchy for stem-splitter.

Every stage of the pipeline wraps the underlying library failure with a
short label (``raise CodecError("Send packet failed.") from e``), so the
full story of a failure is available by walking ``__cause__``.
"""

from typing import List


class StemSplitterError(Exception):
    """Base class for all stem-splitter errors."""


class StemIOError(StemSplitterError):
    """A path could not be created or written."""


class FormatError(StemSplitterError):
    """The input container is unusable (unopenable, no extension, ...)."""


class NoAudioStreamError(FormatError):
    """The input container has no audio stream."""


class CodecError(StemSplitterError):
    """Decoding failed."""


class EncodeError(CodecError):
    """Encoding or muxing an output track failed."""


class ResampleError(StemSplitterError):
    """A resampler could not be built or failed to convert."""


class ModelError(StemSplitterError):
    """Model lookup, loading, binding resolution or inference failed."""


class EncoderNotFoundError(StemSplitterError):
    """No encoder is registered for the codec of the input stream."""


def error_chain(exc: BaseException) -> List[str]:
    """Return the messages of ``exc`` and all of its causes, outermost first."""
    messages = []
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        messages.append(str(current) or type(current).__name__)
        current = current.__cause__
    return messages


def format_error_chain(exc: BaseException) -> str:
    """Render an exception chain on one line.

    Example:
        >>> try:
        ...     try:
        ...         raise OSError("No such file")
        ...     except OSError as e:
        ...         raise FormatError("Open audio file failed.") from e
        ... except FormatError as e:
        ...     print(format_error_chain(e))
        Open audio file failed.: No such file
    """
    return ": ".join(error_chain(exc))
