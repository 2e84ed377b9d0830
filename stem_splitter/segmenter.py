"""Segmented inference for long audio.

This module splits canonical PCM into overlapping windows sized for the
separation model, runs inference on each window, and trims every output
back to its non-overlapping region so the reassembled tracks line up with
the input sample for sample.
"""

import logging
from typing import Callable, List, Sequence

import numpy as np

from .data_models import Segment, TrackPCMAccumulator
from .errors import ModelError
from .models import ModelDescriptor

logger = logging.getLogger(__name__)

InferFn = Callable[[np.ndarray], Sequence[np.ndarray]]


class Segmenter:
    """Plans inference windows and reassembles per-track PCM.

    Each window keeps ``slice_seconds`` of audio and is extended by
    ``extend_seconds`` of context on each side that has a neighbour. The
    context gives the model look-behind and look-ahead and is discarded
    after inference.

    Attributes:
        sample_rate: Audio sample rate in Hz
        slice_length: Samples per channel kept from one window
        extend_length: Context samples per side
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        slice_seconds: int = 30,
        extend_seconds: int = 5,
    ):
        """Initialize segmenter.

        Args:
            sample_rate: Audio sample rate in Hz (default: 44100)
            slice_seconds: Kept duration per window in seconds (default: 30)
            extend_seconds: Context duration per side in seconds (default: 5)

        Raises:
            TypeError: If a parameter is not an integer
            ValueError: If a parameter is out of range
        """
        for name, value in (
            ("sample_rate", sample_rate),
            ("slice_seconds", slice_seconds),
            ("extend_seconds", extend_seconds),
        ):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(
                    f"{name} must be int, got {type(value).__name__}"
                )
        if sample_rate <= 0:
            raise ValueError(
                f"sample_rate must be positive, got {sample_rate}"
            )
        if slice_seconds <= 0:
            raise ValueError(
                f"slice_seconds must be positive, got {slice_seconds}"
            )
        if extend_seconds < 0:
            raise ValueError(
                f"extend_seconds must be non-negative, got {extend_seconds}"
            )
        if extend_seconds > slice_seconds:
            raise ValueError(
                f"extend_seconds ({extend_seconds}s) must not exceed "
                f"slice_seconds ({slice_seconds}s)"
            )

        self.sample_rate = sample_rate
        self.slice_length = sample_rate * slice_seconds
        self.extend_length = sample_rate * extend_seconds

    def segment_count(self, num_samples: int) -> int:
        return -(-num_samples // self.slice_length)

    def plan(self, num_samples: int) -> List[Segment]:
        """Compute the inference windows for ``num_samples`` samples per channel.

        The useful regions of the returned segments partition
        ``[0, num_samples)`` in index order.
        """
        if num_samples < 0:
            raise ValueError(
                f"num_samples must be non-negative, got {num_samples}"
            )

        segment_count = self.segment_count(num_samples)
        segments = []
        for i in range(segment_count):
            is_last = i == segment_count - 1
            current_offset = i * self.slice_length
            extend_begin = 0 if i == 0 else self.extend_length
            extend_end = 0 if is_last else self.extend_length

            useful_length = num_samples - current_offset if is_last else self.slice_length
            process_start = current_offset - extend_begin
            process_length = min(
                useful_length + extend_begin + extend_end,
                num_samples - process_start,
            )

            segments.append(
                Segment(
                    index=i,
                    process_start=process_start,
                    process_length=process_length,
                    useful_start=extend_begin,
                    useful_length=useful_length,
                )
            )
        return segments

    def segment_and_infer(
        self,
        pcm: np.ndarray,
        model: ModelDescriptor,
        infer_fn: InferFn,
    ) -> List[np.ndarray]:
        """Run ``infer_fn`` over every window and rebuild one buffer per track.

        Args:
            pcm: Canonical PCM, float32 array of shape (samples, channels)
            model: Descriptor of the model behind ``infer_fn``
            infer_fn: Maps a (samples, channels) window to one array of the
                same shape per model output

        Returns:
            One (samples, channels) float32 array per model output, in
            ``model.track_names`` order, each as long as ``pcm``

        Raises:
            ValueError: If pcm is not 2-dimensional
            ModelError: If inference fails or returns malformed outputs
        """
        if pcm.ndim != 2:
            raise ValueError(
                f"pcm must be 2-dimensional (samples, channels), got shape {pcm.shape}"
            )

        num_samples, channel_count = pcm.shape
        accumulators = [
            TrackPCMAccumulator(track_name, channel_count)
            for track_name in model.track_names
        ]

        segments = self.plan(num_samples)
        for segment in segments:
            logger.info(
                f"processing: [{segment.process_start}, {segment.process_end}), "
                f"using [{segment.useful_offset}, {segment.useful_end})"
            )

            window = pcm[segment.process_start:segment.process_end]
            outputs = infer_fn(window)
            self._check_outputs(outputs, segment, model, channel_count)

            useful = slice(
                segment.useful_start,
                segment.useful_start + segment.useful_length,
            )
            for accumulator, output in zip(accumulators, outputs):
                accumulator.append(np.asarray(output, dtype=np.float32)[useful])

            logger.info(f"{segment.index + 1}/{len(segments)} done...")

        return [accumulator.finalize() for accumulator in accumulators]

    @staticmethod
    def _check_outputs(
        outputs: Sequence[np.ndarray],
        segment: Segment,
        model: ModelDescriptor,
        channel_count: int,
    ) -> None:
        if len(outputs) != model.output_count:
            raise ModelError(
                f"Model '{model.name}' returned {len(outputs)} outputs for "
                f"segment {segment.index}, expected {model.output_count}"
            )
        expected = (segment.process_length, channel_count)
        for binding_name, output in zip(model.output_binding_names, outputs):
            shape = tuple(np.shape(output))
            if shape != expected:
                raise ModelError(
                    f"Output '{binding_name}' of model '{model.name}' has shape "
                    f"{shape} for segment {segment.index}, expected {expected}"
                )


def segment_and_infer(
    pcm: np.ndarray,
    channel_count: int,
    sample_rate: int,
    model: ModelDescriptor,
    infer_fn: InferFn,
) -> List[np.ndarray]:
    """Segment ``pcm`` with the default window sizes and run inference.

    ``pcm`` may be flat interleaved samples or already shaped
    ``(samples, channel_count)``.
    """
    pcm = np.asarray(pcm, dtype=np.float32).reshape(-1, channel_count)
    return Segmenter(sample_rate=sample_rate).segment_and_infer(pcm, model, infer_fn)
