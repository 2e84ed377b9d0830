"""Catalog of the pretrained Spleeter models.

Binding names are the operation names of the exported Spleeter graphs,
see https://github.com/deezer/spleeter/issues/155#issuecomment-565178677
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import ModelError

DEFAULT_MODEL_NAME = "2stems"


@dataclass(frozen=True)
class ModelDescriptor:
    """Static description of one separation model.

    Attributes:
        name: Catalog name, also the bundle directory name under models_dir
        output_count: Number of separated tracks
        output_binding_names: Graph operation producing each track
        track_names: Output track names, 1:1 with output_binding_names
    """
    name: str
    output_count: int
    output_binding_names: Tuple[str, ...]
    track_names: Tuple[str, ...]

    def __post_init__(self):
        if len(self.output_binding_names) != self.output_count:
            raise ValueError(
                f"model '{self.name}' declares {self.output_count} outputs but "
                f"{len(self.output_binding_names)} binding names"
            )
        if len(self.track_names) != self.output_count:
            raise ValueError(
                f"model '{self.name}' declares {self.output_count} outputs but "
                f"{len(self.track_names)} track names"
            )


_TWO_STEMS = ("strided_slice_13", "strided_slice_23")
_FOUR_STEMS = (
    "strided_slice_13",
    "strided_slice_23",
    "strided_slice_33",
    "strided_slice_43",
)
_FIVE_STEMS = (
    "strided_slice_18",
    "strided_slice_38",
    "strided_slice_48",
    "strided_slice_28",
    "strided_slice_58",
)

MODEL_CATALOG: Tuple[ModelDescriptor, ...] = (
    ModelDescriptor("2stems", 2, _TWO_STEMS, ("vocals", "accompaniment")),
    ModelDescriptor("4stems", 4, _FOUR_STEMS, ("vocals", "drums", "bass", "other")),
    ModelDescriptor(
        "5stems", 5, _FIVE_STEMS, ("vocals", "drums", "bass", "piano", "other")
    ),
    ModelDescriptor("2stems-16kHz", 2, _TWO_STEMS, ("vocals", "accompaniment")),
    ModelDescriptor(
        "4stems-16kHz", 4, _FOUR_STEMS, ("vocals", "drums", "bass", "other")
    ),
    ModelDescriptor(
        "5stems-16kHz", 5, _FIVE_STEMS, ("vocals", "drums", "bass", "piano", "other")
    ),
)


def available_models() -> Tuple[str, ...]:
    """Return catalog names in catalog order."""
    return tuple(model.name for model in MODEL_CATALOG)


def get_model(model_name: str) -> ModelDescriptor:
    """Look up a model by exact name.

    Raises:
        ModelError: If no model has that name
    """
    for model in MODEL_CATALOG:
        if model.name == model_name:
            return model
    raise ModelError(
        f"Unknown model '{model_name}'. "
        f"Available models: {', '.join(available_models())}"
    )
