"""Tests for the model catalog, data models and error chains."""

import numpy as np
import pytest

from stem_splitter import (
    MODEL_CATALOG,
    CanonicalAudioInfo,
    CodecError,
    EncodeError,
    FormatError,
    ModelDescriptor,
    ModelError,
    NoAudioStreamError,
    SavedModelSession,
    StemSplitterError,
    TrackPCMAccumulator,
    available_models,
    get_model,
    identity_inference,
)
from stem_splitter.errors import error_chain, format_error_chain


class TestModelCatalog:
    """Tests for the model catalog."""

    def test_available_models(self):
        """Test catalog names and order."""
        assert available_models() == (
            "2stems", "4stems", "5stems",
            "2stems-16kHz", "4stems-16kHz", "5stems-16kHz",
        )

    @pytest.mark.parametrize("model", MODEL_CATALOG, ids=lambda m: m.name)
    def test_descriptor_consistent(self, model):
        """Test that every descriptor has one binding and one track per output."""
        assert len(model.output_binding_names) == model.output_count
        assert len(model.track_names) == model.output_count
        assert len(set(model.track_names)) == model.output_count

    def test_get_model_2stems(self):
        model = get_model("2stems")

        assert model.output_count == 2
        assert model.output_binding_names == ("strided_slice_13", "strided_slice_23")
        assert model.track_names == ("vocals", "accompaniment")

    def test_get_model_5stems_binding_order(self):
        """Test that 5stems bindings map to tracks in catalog order."""
        model = get_model("5stems-16kHz")

        assert dict(zip(model.track_names, model.output_binding_names)) == {
            "vocals": "strided_slice_18",
            "drums": "strided_slice_38",
            "bass": "strided_slice_48",
            "piano": "strided_slice_28",
            "other": "strided_slice_58",
        }

    @pytest.mark.parametrize("name", ["3stems", "2Stems", "", "2stems "])
    def test_get_model_unknown(self, name):
        """Test that lookup is exact and unknown names raise ModelError."""
        with pytest.raises(ModelError, match="Available models: 2stems, 4stems"):
            get_model(name)

    def test_descriptor_rejects_mismatched_counts(self):
        with pytest.raises(ValueError, match="binding names"):
            ModelDescriptor("bad", 2, ("a",), ("x", "y"))
        with pytest.raises(ValueError, match="track names"):
            ModelDescriptor("bad", 2, ("a", "b"), ("x",))


class TestCanonicalAudioInfo:
    """Tests for CanonicalAudioInfo."""

    def test_new_pcm(self):
        info = CanonicalAudioInfo.new_pcm(44100)

        assert info.sample_rate == 44100
        assert info.sample_format == "flt"
        assert info.channel_layout == "stereo"
        assert info.channels == 2
        assert info.bytes_per_sample == 4
        assert info.sample_stride == 8

    def test_new_pcm_invalid(self):
        with pytest.raises(TypeError, match="sample_rate must be int"):
            CanonicalAudioInfo.new_pcm(44100.0)
        with pytest.raises(ValueError, match="sample_rate must be positive"):
            CanonicalAudioInfo.new_pcm(0)

    def test_empty_buffer(self):
        buffer = CanonicalAudioInfo.new_pcm().empty_buffer()

        assert buffer.shape == (0, 2)
        assert buffer.dtype == np.float32


class TestTrackPCMAccumulator:
    """Tests for TrackPCMAccumulator."""

    def test_append_in_order(self):
        """Test that windows concatenate in append order."""
        accumulator = TrackPCMAccumulator("vocals", 2)
        first = np.ones((3, 2), dtype=np.float32)
        second = np.full((2, 2), 2.0, dtype=np.float32)

        accumulator.append(first)
        accumulator.append(second)
        pcm = accumulator.finalize()

        assert accumulator.num_samples == 5
        assert pcm.flags["C_CONTIGUOUS"]
        np.testing.assert_array_equal(pcm, np.concatenate([first, second]))

    def test_finalize_empty(self):
        pcm = TrackPCMAccumulator("vocals", 2).finalize()

        assert pcm.shape == (0, 2)
        assert pcm.dtype == np.float32

    def test_append_wrong_channels(self):
        accumulator = TrackPCMAccumulator("vocals", 2)

        with pytest.raises(ValueError, match=r"shape \(samples, 2\)"):
            accumulator.append(np.zeros((4, 1), dtype=np.float32))

    def test_finalize_once(self):
        """Test that a finalized track rejects further use."""
        accumulator = TrackPCMAccumulator("vocals", 2)
        accumulator.finalize()

        with pytest.raises(RuntimeError, match="already finalized"):
            accumulator.append(np.zeros((1, 2), dtype=np.float32))
        with pytest.raises(RuntimeError, match="already finalized"):
            accumulator.finalize()


class TestErrors:
    """Tests for the error hierarchy and cause chains."""

    def test_hierarchy(self):
        assert issubclass(NoAudioStreamError, FormatError)
        assert issubclass(EncodeError, CodecError)
        for error_type in (FormatError, CodecError, ModelError):
            assert issubclass(error_type, StemSplitterError)

    def test_error_chain(self):
        """Test that causes are listed outermost first."""
        try:
            try:
                try:
                    raise OSError("No such file or directory")
                except OSError as e:
                    raise FormatError("Open audio file failed.") from e
            except FormatError as e:
                raise FormatError("Decode audio failed.") from e
        except FormatError as e:
            exc = e

        assert error_chain(exc) == [
            "Decode audio failed.",
            "Open audio file failed.",
            "No such file or directory",
        ]
        assert format_error_chain(exc) == (
            "Decode audio failed.: Open audio file failed.: No such file or directory"
        )

    def test_error_chain_uses_type_name_for_empty_message(self):
        assert error_chain(ModelError()) == ["ModelError"]


class TestInference:
    """Tests for inference helpers that do not need a model bundle."""

    def test_identity_inference(self):
        model = get_model("5stems")
        window = np.ones((10, 2), dtype=np.float32)

        outputs = identity_inference(model)(window)

        assert len(outputs) == 5
        assert all(output is window for output in outputs)

    def test_session_outside_with_block(self):
        session = SavedModelSession("models/models/2stems", get_model("2stems"))

        with pytest.raises(ModelError, match="outside of its 'with' block"):
            session(np.zeros((10, 2), dtype=np.float32))
