"""stem-splitter: Spleeter stem separation that keeps the input format.

This module decodes any audio file FFmpeg understands, runs a Spleeter
model over it in overlapping windows, and re-encodes every separated track
with the codec and container of the input.

Example:
    >>> from stem_splitter import StemSplitter
    >>> splitter = StemSplitter("2stems", models_dir="models/models")
    >>> paths, info = splitter.separate("song.flac", "out")
    >>> print(f"{info.num_segments} segments, {info.duration:.1f}s of audio")
"""

from .data_models import (
    CanonicalAudioInfo,
    CodecParameters,
    Segment,
    SeparationInfo,
    SourceAudioParameters,
    TrackPCMAccumulator,
)
from .decoder import decode_audio
from .encoder import encode_pcm
from .errors import (
    CodecError,
    EncodeError,
    EncoderNotFoundError,
    FormatError,
    ModelError,
    NoAudioStreamError,
    ResampleError,
    StemIOError,
    StemSplitterError,
)
from .inference import SavedModelSession, identity_inference
from .models import MODEL_CATALOG, ModelDescriptor, available_models, get_model
from .profiler import PerformanceProfiler, PerformanceStats
from .segmenter import Segmenter, segment_and_infer
from .stem_splitter import StemSplitter, separate_file

__version__ = "0.1.0"

__all__ = [
    "CanonicalAudioInfo",
    "CodecError",
    "CodecParameters",
    "EncodeError",
    "EncoderNotFoundError",
    "FormatError",
    "MODEL_CATALOG",
    "ModelDescriptor",
    "ModelError",
    "NoAudioStreamError",
    "PerformanceProfiler",
    "PerformanceStats",
    "ResampleError",
    "SavedModelSession",
    "Segment",
    "Segmenter",
    "SeparationInfo",
    "SourceAudioParameters",
    "StemIOError",
    "StemSplitter",
    "StemSplitterError",
    "TrackPCMAccumulator",
    "available_models",
    "decode_audio",
    "encode_pcm",
    "get_model",
    "identity_inference",
    "segment_and_infer",
    "separate_file",
]
