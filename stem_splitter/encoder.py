"""Encoding of canonical PCM tracks back into the source codec.

Each track is resampled into the format the encoder expects, batched into
the encoder's frame size, stamped with sample-clock timestamps and muxed
into a container chosen from the output file extension.
"""

import logging
from fractions import Fraction
from pathlib import Path
from typing import Iterator, List, Union

import av
import numpy as np

from .data_models import CanonicalAudioInfo, CodecParameters, SourceAudioParameters
from .errors import EncodeError, EncoderNotFoundError, ResampleError

logger = logging.getLogger(__name__)

# libavformat / libavcodec flag values
AVFMT_GLOBALHEADER = 0x0040
AV_CODEC_FLAG_GLOBAL_HEADER = 1 << 22

# Used when the encoder accepts frames of any size (frame_size == 0)
DEFAULT_FRAME_SIZE = 1024


def iter_frame_chunks(pcm: np.ndarray, frame_size: int) -> Iterator[np.ndarray]:
    """Yield consecutive ``frame_size``-sample slices of ``pcm``; the last may be shorter."""
    if frame_size <= 0:
        raise ValueError(f"frame_size must be positive, got {frame_size}")
    for start in range(0, pcm.shape[0], frame_size):
        yield pcm[start:start + frame_size]


def find_encoder(codec_name: str) -> av.Codec:
    """Resolve the encoder registered for a codec id name.

    Raises:
        EncoderNotFoundError: If FFmpeg has no encoder for ``codec_name``
    """
    try:
        return av.Codec(codec_name, "w")
    except ValueError as e:
        raise EncoderNotFoundError(f"encoder({codec_name}) not found.") from e


def _pick_sample_format(codec: av.Codec, codec_parameters: CodecParameters) -> str:
    supported = [audio_format.name for audio_format in (codec.audio_formats or ())]
    if not supported or codec_parameters.sample_format in supported:
        return codec_parameters.sample_format
    if codec_parameters.sample_format:
        logger.warning(
            f"Encoder '{codec.name}' does not support sample format "
            f"'{codec_parameters.sample_format}', using '{supported[0]}'"
        )
    return supported[0]


def _init_encode_stream(
    output_container,
    codec: av.Codec,
    source_parameters: SourceAudioParameters,
):
    """Add the output stream and configure its encoder from the source parameters."""
    codec_parameters = source_parameters.codec_parameters
    try:
        stream = output_container.add_stream(
            codec.name, rate=codec_parameters.sample_rate
        )
        encode_context = stream.codec_context
        encode_context.sample_rate = codec_parameters.sample_rate
        encode_context.layout = codec_parameters.channel_layout
        sample_format = _pick_sample_format(codec, codec_parameters)
        if sample_format:
            encode_context.format = sample_format
        if codec_parameters.bit_rate:
            encode_context.bit_rate = codec_parameters.bit_rate
        # The source stream time base can tick much finer than the sample clock,
        # which makes the encoder queue report input going backward in time.
        encode_context.time_base = Fraction(1, codec_parameters.sample_rate)
    except (ValueError, OverflowError, ZeroDivisionError, av.error.FFmpegError) as e:
        raise EncodeError("Init encode context failed.") from e

    # Containers such as MP4 need the codec headers out of band.
    if output_container.format.flags & AVFMT_GLOBALHEADER:
        encode_context.flags |= AV_CODEC_FLAG_GLOBAL_HEADER

    stream.time_base = source_parameters.time_base
    return stream


def _create_resampler(encode_context) -> av.AudioResampler:
    try:
        return av.AudioResampler(
            format=encode_context.format.name,
            layout=encode_context.layout.name,
            rate=encode_context.sample_rate,
        )
    except (ValueError, av.error.FFmpegError) as e:
        raise ResampleError("Init encode resample context failed.") from e


def _create_input_frame(
    pcm: np.ndarray,
    pcm_audio_info: CanonicalAudioInfo,
    pts: int,
) -> av.AudioFrame:
    frame = av.AudioFrame.from_ndarray(
        np.ascontiguousarray(pcm, dtype=np.float32).reshape(1, -1),
        format=pcm_audio_info.sample_format,
        layout=pcm_audio_info.channel_layout,
    )
    frame.sample_rate = pcm_audio_info.sample_rate
    frame.pts = pts
    frame.time_base = Fraction(1, pcm_audio_info.sample_rate)
    return frame


def _resample(
    resampler: av.AudioResampler,
    frame: Union[av.AudioFrame, None],
) -> List[av.AudioFrame]:
    try:
        return [out for out in resampler.resample(frame) if out.samples > 0]
    except (ValueError, av.error.FFmpegError) as e:
        raise ResampleError("Convert pcm frame to output frame failed.") from e


def _write_frame(output_container, stream, frame: Union[av.AudioFrame, None]) -> None:
    """Encode ``frame`` (or flush with ``None``) and mux every packet produced.

    Muxing rescales packet timestamps from the encoder time base to the
    stream time base.
    """
    try:
        for packet in stream.encode(frame):
            output_container.mux(packet)
    except av.error.FFmpegError as e:
        raise EncodeError("Write frame failed.") from e


class _FrameStamper:
    """Assigns presentation timestamps from the running count of emitted samples."""

    def __init__(self, time_base: Fraction):
        self.time_base = time_base
        self.pts = 0
        self.frames = 0

    def stamp(self, frame: av.AudioFrame) -> av.AudioFrame:
        frame.pts = self.pts
        frame.time_base = self.time_base
        self.pts += frame.samples
        self.frames += 1
        return frame


def _encode_pcm_data(
    output_container,
    pcm_data: np.ndarray,
    pcm_audio_info: CanonicalAudioInfo,
    source_parameters: SourceAudioParameters,
    codec: av.Codec,
) -> _FrameStamper:
    stream = _init_encode_stream(output_container, codec, source_parameters)
    encode_context = stream.codec_context

    try:
        # Opens the encoder and writes its codec parameters (including any
        # encoder-generated extradata) into the header.
        output_container.start_encoding()
    except (ValueError, av.error.FFmpegError) as e:
        raise EncodeError("Write header failed.") from e

    resampler = _create_resampler(encode_context)
    frame_size = encode_context.frame_size or DEFAULT_FRAME_SIZE
    stamper = _FrameStamper(encode_context.time_base)
    logger.debug(
        f"Encoding {pcm_data.shape[0]} samples with '{codec.name}', "
        f"frame_size={frame_size}, stride={pcm_audio_info.sample_stride} bytes"
    )

    sample_offset = 0
    for chunk in iter_frame_chunks(pcm_data, frame_size):
        input_frame = _create_input_frame(chunk, pcm_audio_info, sample_offset)
        for output_frame in _resample(resampler, input_frame):
            _write_frame(output_container, stream, stamper.stamp(output_frame))
        sample_offset += chunk.shape[0]

    for output_frame in _resample(resampler, None):
        _write_frame(output_container, stream, stamper.stamp(output_frame))

    _write_frame(output_container, stream, None)
    return stamper


def _discard_partial_output(output_container, output_path: Path) -> None:
    try:
        output_container.close()
    except (OSError, ValueError, av.error.FFmpegError) as e:
        logger.debug(f"Closing failed output '{output_path}' raised: {e}")
    output_path.unlink(missing_ok=True)
    logger.warning(f"Removed partially written '{output_path}'")


def encode_pcm(
    pcm_data: np.ndarray,
    pcm_audio_info: CanonicalAudioInfo,
    source_parameters: SourceAudioParameters,
    output_path: Union[str, Path],
) -> None:
    """Encode one canonical PCM track into ``output_path``.

    The codec identity comes from ``source_parameters``; the container format
    is guessed from the extension of ``output_path``. An empty track produces
    a valid file with a header and trailer but no media packets.

    Args:
        pcm_data: Canonical PCM, float32 array of shape (samples, channels)
        pcm_audio_info: Format of ``pcm_data``
        source_parameters: Captured parameters of the input stream
        output_path: File to create

    Raises:
        EncoderNotFoundError: If no encoder exists for the source codec
        EncodeError: If the container cannot be created or written
        ResampleError: If conversion to the encoder format fails
    """
    output_path = Path(output_path)
    pcm_data = np.asarray(pcm_data, dtype=np.float32).reshape(-1, pcm_audio_info.channels)
    codec = find_encoder(source_parameters.codec_parameters.codec_name)

    try:
        output_container = av.open(str(output_path), mode="w")
    except (OSError, ValueError, av.error.FFmpegError) as e:
        raise EncodeError(
            f"Create output format context for '{output_path}' failed."
        ) from e

    completed = False
    try:
        stamper = _encode_pcm_data(
            output_container, pcm_data, pcm_audio_info, source_parameters, codec
        )
        try:
            output_container.close()
        except (OSError, av.error.FFmpegError) as e:
            raise EncodeError("Write trailer failed.") from e
        completed = True
    finally:
        if not completed:
            _discard_partial_output(output_container, output_path)

    logger.debug(
        f"Wrote {stamper.pts} samples in {stamper.frames} frames to '{output_path}'"
    )
