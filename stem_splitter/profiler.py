"""Performance profiling utilities.

This module provides tools for measuring how long the stages of the
stem-splitter pipeline take relative to the duration of the audio.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class PerformanceStats:
    """Performance statistics for one separation run.

    Attributes:
        audio_duration: Total audio duration in seconds
        processing_time: Wall-clock processing time in seconds
        rtf: Real-time factor (processing_time / audio_duration)
        throughput: Audio seconds processed per wall-clock second
        num_segments: Number of inference windows processed
        model_name: Model used for separation
    """
    audio_duration: float
    processing_time: float
    rtf: float
    throughput: float
    num_segments: int
    model_name: str

    def __str__(self) -> str:
        return (
            f"Performance: {self.audio_duration:.1f}s audio in {self.processing_time:.2f}s "
            f"(RTF: {self.rtf:.3f}, throughput: {self.throughput:.1f}x, "
            f"segments: {self.num_segments}, model: {self.model_name})"
        )


@dataclass
class Timing:
    """Elapsed wall-clock time of a measured block, set when the block exits."""
    elapsed: float = 0.0


class PerformanceProfiler:
    """Profiles separation performance.

    Tracks timing, throughput, and real-time factor for separation runs.
    """

    @staticmethod
    def calculate_stats(
        audio_duration: float,
        processing_time: float,
        num_segments: int,
        model_name: str,
    ) -> PerformanceStats:
        """Calculate performance statistics.

        Args:
            audio_duration: Total audio duration in seconds
            processing_time: Wall-clock processing time in seconds
            num_segments: Number of inference windows processed
            model_name: Model used for separation

        Returns:
            PerformanceStats object with calculated metrics
        """
        rtf = processing_time / audio_duration if audio_duration > 0 else 0.0
        throughput = audio_duration / processing_time if processing_time > 0 else 0.0

        return PerformanceStats(
            audio_duration=audio_duration,
            processing_time=processing_time,
            rtf=rtf,
            throughput=throughput,
            num_segments=num_segments,
            model_name=model_name,
        )

    @staticmethod
    @contextmanager
    def measure():
        """Context manager measuring the wall-clock time of its block.

        Example:
            >>> with PerformanceProfiler.measure() as timing:
            ...     splitter.separate("song.mp3", "out")
            >>> print(f"{timing.elapsed:.2f}s")
        """
        timing = Timing()
        start_time = time.perf_counter()
        try:
            yield timing
        finally:
            timing.elapsed = time.perf_counter() - start_time
