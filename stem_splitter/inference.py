"""Inference through exported Spleeter SavedModel bundles.

TensorFlow is an optional dependency and is imported when a session is
opened, so decoding, segmentation and encoding work without it.
"""

import logging
from pathlib import Path
from typing import Callable, List, Sequence, Union

import numpy as np

from .errors import ModelError
from .models import ModelDescriptor

logger = logging.getLogger(__name__)

INPUT_BINDING_NAME = "Placeholder"
SERVING_TAGS = ["serve"]


class SavedModelSession:
    """Loads one model bundle and runs it on PCM windows.

    The session is a context manager: the bundle is loaded and every
    binding resolved on enter, and the TensorFlow session is closed on exit.
    Inside the ``with`` block the object is callable with a
    ``(samples, channels)`` float32 window and returns one array per
    ``model.output_binding_names`` entry.

    Example:
        >>> model = get_model("2stems")
        >>> with SavedModelSession("models/models/2stems", model) as infer:
        ...     vocals, accompaniment = infer(window)

    Attributes:
        model_dir: Directory of the SavedModel bundle
        model: Descriptor of the bundle's outputs
        input_name: Operation name of the input placeholder
    """

    def __init__(
        self,
        model_dir: Union[str, Path],
        model: ModelDescriptor,
        input_name: str = INPUT_BINDING_NAME,
    ):
        self.model_dir = Path(model_dir)
        self.model = model
        self.input_name = input_name
        self._tf = None
        self._session = None
        self._input = None
        self._outputs: List = []

    def __enter__(self) -> "SavedModelSession":
        try:
            import tensorflow as tf
        except ImportError as e:
            raise ModelError(
                "TensorFlow is required to run separation models. "
                "Install it with: pip install stem-splitter[tensorflow]"
            ) from e

        logger.info(f"Loading model '{self.model.name}' from '{self.model_dir}'")
        logger.info(f"tensorflow_version={tf.version.VERSION}")

        if not self.model_dir.is_dir():
            raise ModelError(
                f"Cannot load session: model bundle '{self.model_dir}' not found. "
                f"Download the '{self.model.name}' Spleeter model into it"
            )

        graph = tf.Graph()
        session = tf.compat.v1.Session(graph=graph)
        try:
            try:
                tf.compat.v1.saved_model.loader.load(
                    session, SERVING_TAGS, str(self.model_dir)
                )
            except (OSError, RuntimeError, tf.errors.OpError) as e:
                raise ModelError(
                    f"Cannot load session from '{self.model_dir}'."
                ) from e

            self._input = self._resolve(graph, self.input_name)
            self._outputs = [
                self._resolve(graph, name)
                for name in self.model.output_binding_names
            ]
        except ModelError:
            session.close()
            raise

        self._tf = tf
        self._session = session
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if self._session is not None:
            self._session.close()
        self._session = None
        self._input = None
        self._outputs = []
        return False

    def __call__(self, window: np.ndarray) -> List[np.ndarray]:
        if self._session is None:
            raise ModelError("SavedModelSession used outside of its 'with' block")
        try:
            return self._session.run(
                self._outputs, feed_dict={self._input: window}
            )
        except self._tf.errors.OpError as e:
            raise ModelError(
                f"Run session failed on a window of shape {window.shape}."
            ) from e

    def _resolve(self, graph, operation_name: str):
        try:
            return graph.get_operation_by_name(operation_name).outputs[0]
        except (KeyError, ValueError) as e:
            raise ModelError(
                f"Get operation '{operation_name}' failed for model '{self.model.name}'."
            ) from e


def identity_inference(
    model: ModelDescriptor,
) -> Callable[[np.ndarray], Sequence[np.ndarray]]:
    """Return an infer function echoing its window once per model output.

    Useful for dry runs of the transcoding pipeline without a model bundle.
    """
    def infer(window: np.ndarray) -> List[np.ndarray]:
        return [window] * model.output_count

    return infer
