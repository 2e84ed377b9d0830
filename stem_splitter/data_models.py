"""Core data models for stem-splitter.

This module defines the data structures shared by the decode, segment and
encode stages: the canonical PCM format, the captured parameters of the
source stream, inference segments, per-track accumulators and run metadata.

Canonical PCM buffers are ``numpy.float32`` arrays of shape
``(samples, channels)`` in C order, so ``buffer.tobytes()`` is exactly the
interleaved byte sequence the codec engine expects.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import List, Optional, Tuple

import av
import numpy as np

CANONICAL_SAMPLE_RATE = 44100
CANONICAL_SAMPLE_FORMAT = "flt"
CANONICAL_CHANNEL_LAYOUT = "stereo"


@dataclass(frozen=True)
class CanonicalAudioInfo:
    """Fixed PCM shape used between decoding and inference.

    Attributes:
        sample_rate: Samples per second per channel
        sample_format: FFmpeg sample format name (interleaved 32-bit float)
        channel_layout: FFmpeg channel layout name
        channels: Number of channels in the layout
        bytes_per_sample: Size of one sample of one channel in bytes
    """
    sample_rate: int
    sample_format: str
    channel_layout: str
    channels: int
    bytes_per_sample: int

    @classmethod
    def new_pcm(cls, sample_rate: int = CANONICAL_SAMPLE_RATE) -> "CanonicalAudioInfo":
        """Build the canonical descriptor: interleaved stereo float at ``sample_rate``."""
        if not isinstance(sample_rate, int):
            raise TypeError(
                f"sample_rate must be int, got {type(sample_rate).__name__}"
            )
        if sample_rate <= 0:
            raise ValueError(
                f"sample_rate must be positive, got {sample_rate}"
            )
        return cls(
            sample_rate=sample_rate,
            sample_format=CANONICAL_SAMPLE_FORMAT,
            channel_layout=CANONICAL_CHANNEL_LAYOUT,
            channels=len(av.AudioLayout(CANONICAL_CHANNEL_LAYOUT).channels),
            bytes_per_sample=av.AudioFormat(CANONICAL_SAMPLE_FORMAT).bytes,
        )

    @property
    def sample_stride(self) -> int:
        """Bytes per interleaved sample frame (all channels)."""
        return self.bytes_per_sample * self.channels

    def empty_buffer(self) -> np.ndarray:
        return np.zeros((0, self.channels), dtype=np.float32)


@dataclass(frozen=True)
class CodecParameters:
    """Codec identity of a stream, captured before any decoding.

    Attributes:
        codec_name: Canonical FFmpeg codec id name (e.g. "mp3", "aac")
        sample_format: Sample format name, empty if the stream did not declare one
        sample_rate: Sample rate in Hz
        channel_layout: Channel layout name
        channels: Number of channels
        bit_rate: Bit rate in bits/s, 0 when unknown
        extradata: Codec-specific header bytes, possibly empty
    """
    codec_name: str
    sample_format: str
    sample_rate: int
    channel_layout: str
    channels: int
    bit_rate: int = 0
    extradata: bytes = b""


@dataclass(frozen=True)
class SourceAudioParameters:
    """Parameters of the input audio stream reused for every output stream.

    ``time_base`` is the tick duration of the source stream timestamps. It is
    used as the output stream time base but never as the encoder time base.
    """
    time_base: Fraction
    codec_parameters: CodecParameters


@dataclass(frozen=True)
class Segment:
    """One inference window over the canonical PCM.

    Attributes:
        index: Position of the segment in processing order (0-based)
        process_start: First sample (per channel) fed to the model
        process_length: Number of samples fed to the model
        useful_start: Offset of the kept region inside the processed window
        useful_length: Number of samples kept from the model output
    """
    index: int
    process_start: int
    process_length: int
    useful_start: int
    useful_length: int

    @property
    def process_end(self) -> int:
        return self.process_start + self.process_length

    @property
    def useful_offset(self) -> int:
        """Absolute position of the kept region in the whole track."""
        return self.process_start + self.useful_start

    @property
    def useful_end(self) -> int:
        return self.useful_offset + self.useful_length


class TrackPCMAccumulator:
    """Append-only canonical PCM buffer for one output track.

    Trimmed segment outputs are appended in segment order; concatenation
    order is time order.
    """

    def __init__(self, track_name: str, channels: int):
        self.track_name = track_name
        self.channels = channels
        self._parts: List[np.ndarray] = []
        self._num_samples = 0
        self._finalized = False

    @property
    def num_samples(self) -> int:
        return self._num_samples

    def append(self, pcm: np.ndarray) -> None:
        if self._finalized:
            raise RuntimeError(f"track '{self.track_name}' already finalized")
        if pcm.ndim != 2 or pcm.shape[1] != self.channels:
            raise ValueError(
                f"pcm must have shape (samples, {self.channels}), got {pcm.shape}"
            )
        self._parts.append(np.asarray(pcm, dtype=np.float32))
        self._num_samples += pcm.shape[0]

    def finalize(self) -> np.ndarray:
        """Concatenate all appended windows into one contiguous buffer."""
        if self._finalized:
            raise RuntimeError(f"track '{self.track_name}' already finalized")
        self._finalized = True
        if not self._parts:
            return np.zeros((0, self.channels), dtype=np.float32)
        pcm = np.ascontiguousarray(np.concatenate(self._parts, axis=0))
        self._parts = []
        return pcm


@dataclass
class SeparationInfo:
    """Metadata about one separation run.

    Attributes:
        duration: Input duration in seconds (canonical sample clock)
        num_samples: Canonical samples per channel
        num_segments: Number of inference windows
        model_name: Catalog name of the model used
        track_names: Output track names in output order
        processing_time: Total wall-clock time in seconds
        output_dir: Directory the tracks were written to, None when unknown
    """
    duration: float
    num_samples: int
    num_segments: int
    model_name: str
    track_names: Tuple[str, ...]
    processing_time: float
    output_dir: Optional[str] = None
