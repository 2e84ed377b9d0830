"""Main API class for stem-splitter.

This module provides the StemSplitter class, which is the primary interface
for using stem-splitter. It validates parameters, looks up the model, and
runs the decode, segmented inference and encode stages for one file.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .data_models import CanonicalAudioInfo, SeparationInfo
from .decoder import decode_audio
from .encoder import encode_pcm
from .errors import FormatError, StemIOError, StemSplitterError
from .inference import SavedModelSession
from .models import DEFAULT_MODEL_NAME, get_model
from .profiler import PerformanceProfiler
from .segmenter import InferFn, Segmenter

logger = logging.getLogger(__name__)

DEFAULT_MODELS_DIR = "models/models"


class StemSplitter:
    """Separates audio files into stems with a Spleeter model.

    Example:
        >>> splitter = StemSplitter("2stems", models_dir="models/models")
        >>> paths, info = splitter.separate("song.mp3", "out")
        >>> for path in paths:
        ...     print(path)
        out/vocals.mp3
        out/accompaniment.mp3

    Attributes:
        model: Descriptor of the separation model
        models_dir: Directory holding one bundle directory per model name
        pcm_audio_info: Canonical PCM format used for inference
        segmenter: Plans the inference windows
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        models_dir: Union[str, Path] = DEFAULT_MODELS_DIR,
        sample_rate: int = 44100,
        slice_seconds: int = 30,
        extend_seconds: int = 5,
    ):
        """Initialize stem splitter.

        Args:
            model_name: Catalog name of the model (e.g., "2stems", "4stems")
            models_dir: Directory containing the model bundles
            sample_rate: Canonical sample rate fed to the model
            slice_seconds: Kept duration per inference window in seconds
            extend_seconds: Context duration per side in seconds

        Raises:
            TypeError: If parameters have invalid types
            ValueError: If parameters are out of range
            ModelError: If model_name is not in the catalog
        """
        if not isinstance(model_name, str):
            raise TypeError(
                f"model_name must be str, got {type(model_name).__name__}"
            )
        if not isinstance(models_dir, (str, Path)):
            raise TypeError(
                f"models_dir must be str or Path, got {type(models_dir).__name__}"
            )

        self.model = get_model(model_name)
        self.models_dir = Path(models_dir)
        self.pcm_audio_info = CanonicalAudioInfo.new_pcm(sample_rate)
        self.segmenter = Segmenter(
            sample_rate=sample_rate,
            slice_seconds=slice_seconds,
            extend_seconds=extend_seconds,
        )

        logger.info(
            f"StemSplitter initialized: model={self.model.name}, "
            f"tracks={', '.join(self.model.track_names)}, sample_rate={sample_rate}"
        )

    @property
    def model_dir(self) -> Path:
        return self.models_dir / self.model.name

    def output_paths(self, input_path: Union[str, Path], output_dir: Union[str, Path]) -> List[Path]:
        """Return ``output_dir/<track_name>.<input extension>`` for every track.

        Raises:
            FormatError: If input_path has no extension
        """
        extension = Path(input_path).suffix
        if not extension:
            raise FormatError(f"Audio path '{input_path}' has no extension.")
        return [
            Path(output_dir) / f"{track_name}{extension}"
            for track_name in self.model.track_names
        ]

    def separate(
        self,
        input_path: Union[str, Path],
        output_dir: Union[str, Path],
        infer_fn: Optional[InferFn] = None,
    ) -> Tuple[List[Path], SeparationInfo]:
        """Separate one audio file into one file per track.

        Args:
            input_path: Audio file to separate
            output_dir: Directory for the output files (created if missing)
            infer_fn: Inference function to use instead of loading the model
                bundle, mapping a (samples, channels) window to one array per
                track

        Returns:
            paths: Written files in track order
            info: Separation metadata

        Raises:
            StemSplitterError: If any stage fails; earlier tracks stay on disk
        """
        output_paths = self.output_paths(input_path, output_dir)
        try:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StemIOError(f"Create output dir '{output_dir}' failed.") from e

        with PerformanceProfiler.measure() as timing:
            try:
                source_parameters, pcm_data = decode_audio(input_path, self.pcm_audio_info)
            except StemSplitterError as e:
                raise type(e)("Decode audio failed.") from e

            try:
                if infer_fn is not None:
                    tracks = self.segmenter.segment_and_infer(pcm_data, self.model, infer_fn)
                else:
                    with SavedModelSession(self.model_dir, self.model) as session:
                        tracks = self.segmenter.segment_and_infer(pcm_data, self.model, session)
            except StemSplitterError as e:
                raise type(e)("Split pcm audio failed.") from e

            for output_path, track_pcm in zip(output_paths, tracks):
                logger.info(f"Writing: {output_path}")
                try:
                    encode_pcm(track_pcm, self.pcm_audio_info, source_parameters, output_path)
                except StemSplitterError as e:
                    raise type(e)("Encode pcm data failed.") from e

        num_samples = pcm_data.shape[0]
        info = SeparationInfo(
            duration=num_samples / self.pcm_audio_info.sample_rate,
            num_samples=num_samples,
            num_segments=self.segmenter.segment_count(num_samples),
            model_name=self.model.name,
            track_names=self.model.track_names,
            processing_time=timing.elapsed,
            output_dir=str(output_dir),
        )
        logger.info(
            str(PerformanceProfiler.calculate_stats(
                audio_duration=info.duration,
                processing_time=info.processing_time,
                num_segments=info.num_segments,
                model_name=info.model_name,
            ))
        )
        return output_paths, info


def separate_file(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    model_name: str = DEFAULT_MODEL_NAME,
    models_dir: Union[str, Path] = DEFAULT_MODELS_DIR,
) -> Tuple[List[Path], SeparationInfo]:
    """Separate one file with a one-shot StemSplitter."""
    return StemSplitter(model_name, models_dir=models_dir).separate(input_path, output_dir)
