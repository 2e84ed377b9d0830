"""Decoding of arbitrary audio files into canonical PCM.

The input container is demuxed with PyAV, the best audio stream is decoded,
and every decoded frame is resampled into the canonical format and appended
to one contiguous buffer.
"""

import logging
from fractions import Fraction
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import av
import numpy as np

from .data_models import CanonicalAudioInfo, CodecParameters, SourceAudioParameters
from .errors import CodecError, FormatError, NoAudioStreamError, ResampleError

logger = logging.getLogger(__name__)


def frames_to_pcm(frames: Iterable[av.AudioFrame], channels: int) -> List[np.ndarray]:
    """Convert packed (interleaved) frames into ``(samples, channels)`` arrays."""
    return [
        frame.to_ndarray().reshape(-1, channels)
        for frame in frames
        if frame.samples > 0
    ]


def capture_parameters(stream) -> SourceAudioParameters:
    """Snapshot the codec identity and time base of ``stream``.

    Must run before the first packet is decoded.
    """
    codec_context = stream.codec_context
    sample_format = codec_context.format.name if codec_context.format else ""
    time_base = stream.time_base
    if not time_base:
        time_base = Fraction(1, codec_context.sample_rate)

    return SourceAudioParameters(
        time_base=Fraction(time_base),
        codec_parameters=CodecParameters(
            codec_name=codec_context.codec.canonical_name,
            sample_format=sample_format,
            sample_rate=codec_context.sample_rate,
            channel_layout=codec_context.layout.name,
            channels=len(codec_context.layout.channels),
            bit_rate=codec_context.bit_rate or 0,
            extradata=bytes(codec_context.extradata or b""),
        ),
    )


def _create_resampler(target_format: CanonicalAudioInfo) -> av.AudioResampler:
    try:
        return av.AudioResampler(
            format=target_format.sample_format,
            layout=target_format.channel_layout,
            rate=target_format.sample_rate,
        )
    except (ValueError, av.error.FFmpegError) as e:
        raise ResampleError("SwrContext parameters incorrect.") from e


def _resample(
    resampler: av.AudioResampler,
    frame: Union[av.AudioFrame, None],
    channels: int,
) -> List[np.ndarray]:
    try:
        return frames_to_pcm(resampler.resample(frame), channels)
    except (ValueError, av.error.FFmpegError) as e:
        raise ResampleError("Convert sample failed.") from e


def _decode_resample_save(
    decode_context,
    resampler: av.AudioResampler,
    packet: Union[av.Packet, None],
    target_format: CanonicalAudioInfo,
    pcm_parts: List[np.ndarray],
) -> None:
    """Decode one packet (or flush with ``None``) and append converted PCM.

    The decoder returns every frame it can produce for this input; an empty
    result means it needs more input.
    """
    try:
        frames = decode_context.decode(packet)
    except av.error.FFmpegError as e:
        raise CodecError("Receive frame failed.") from e

    for frame in frames:
        pcm_parts.extend(_resample(resampler, frame, target_format.channels))


def decode_audio(
    audio_path: Union[str, Path],
    target_format: CanonicalAudioInfo,
) -> Tuple[SourceAudioParameters, np.ndarray]:
    """Decode the best audio stream of ``audio_path`` into canonical PCM.

    Args:
        audio_path: Path to any container FFmpeg can demux
        target_format: Canonical format of the returned PCM

    Returns:
        source_parameters: Codec parameters and time base of the input stream
        pcm: float32 array of shape (samples, target_format.channels)

    Raises:
        FormatError: If the container cannot be opened
        NoAudioStreamError: If the container has no audio stream
        CodecError: If decoding fails
        ResampleError: If conversion to the canonical format fails
    """
    audio_path = str(audio_path)
    try:
        input_container = av.open(audio_path)
    except (OSError, av.error.FFmpegError) as e:
        raise FormatError(f"Open audio file '{audio_path}' failed.") from e

    with input_container:
        stream = input_container.streams.best("audio")
        if stream is None:
            raise NoAudioStreamError(
                f"Cannot find audio stream in '{audio_path}'."
            )

        source_parameters = capture_parameters(stream)
        codec_parameters = source_parameters.codec_parameters
        logger.info(
            f"Input #{stream.index} '{audio_path}': {codec_parameters.codec_name}, "
            f"{codec_parameters.sample_rate} Hz, {codec_parameters.channel_layout}, "
            f"{codec_parameters.sample_format or 'unknown format'}, "
            f"time_base={source_parameters.time_base}"
        )

        resampler = _create_resampler(target_format)
        decode_context = stream.codec_context
        pcm_parts: List[np.ndarray] = []

        try:
            for packet in input_container.demux(stream):
                # The demuxer ends with an empty packet per stream; the
                # decoder is flushed explicitly below instead.
                if packet.size == 0:
                    continue
                _decode_resample_save(
                    decode_context, resampler, packet, target_format, pcm_parts
                )
        except av.error.FFmpegError as e:
            raise CodecError("Read packet failed.") from e

        _decode_resample_save(
            decode_context, resampler, None, target_format, pcm_parts
        )
        pcm_parts.extend(_resample(resampler, None, target_format.channels))

    if pcm_parts:
        pcm = np.ascontiguousarray(np.concatenate(pcm_parts, axis=0), dtype=np.float32)
    else:
        pcm = target_format.empty_buffer()

    logger.info(
        f"Decoded {pcm.shape[0]} samples per channel "
        f"({pcm.shape[0] / target_format.sample_rate:.2f}s)"
    )
    return source_parameters, pcm
