"""Basic usage example for stem-splitter.

This example demonstrates:
1. Separating a file with a Spleeter model
2. Choosing a model from the catalog
3. A dry run of the transcoding path without a model
4. Using the pipeline stages directly
"""

from stem_splitter import (
    CanonicalAudioInfo,
    Segmenter,
    StemSplitter,
    StemSplitterError,
    available_models,
    decode_audio,
    encode_pcm,
    get_model,
    identity_inference,
)
from stem_splitter.errors import format_error_chain

audio_path = "song.mp3"  # Your audio file here

# =============================================================================
# Example 1: Basic Separation
# =============================================================================
print("=" * 70)
print("Example 1: Basic Separation")
print("=" * 70)

# - model_name: catalog name of the Spleeter model
# - models_dir: directory holding one exported bundle per model name
splitter = StemSplitter(model_name="2stems", models_dir="models/models")

try:
    paths, info = splitter.separate(audio_path, "out/2stems")

    print(f"\nAudio duration: {info.duration:.2f}s")
    print(f"Processing time: {info.processing_time:.2f}s")
    print(f"Processed in {info.num_segments} segment(s)")
    for path in paths:
        print(f"  {path}")
except StemSplitterError as e:
    # Every stage adds a label; the chain reads outermost first
    print(f"Error during separation: {format_error_chain(e)}")

# =============================================================================
# Example 2: Model Catalog
# =============================================================================
print("\n" + "=" * 70)
print("Example 2: Model Catalog")
print("=" * 70)

for name in available_models():
    model = get_model(name)
    print(f"  {name:<14} {', '.join(model.track_names)}")

# =============================================================================
# Example 3: Dry Run Without a Model
# =============================================================================
print("\n" + "=" * 70)
print("Example 3: Dry Run Without a Model")
print("=" * 70)

# Every track receives the input unchanged, which checks decoding,
# segmentation and encoding without TensorFlow or a model bundle.
splitter = StemSplitter("4stems", slice_seconds=10, extend_seconds=2)
try:
    paths, info = splitter.separate(
        audio_path, "out/identity", infer_fn=identity_inference(splitter.model)
    )
    print(f"Wrote {len(paths)} tracks in {info.processing_time:.2f}s")
except StemSplitterError as e:
    print(f"Error: {format_error_chain(e)}")

# =============================================================================
# Example 4: Pipeline Stages
# =============================================================================
print("\n" + "=" * 70)
print("Example 4: Pipeline Stages")
print("=" * 70)

pcm_audio_info = CanonicalAudioInfo.new_pcm(44100)
model = get_model("2stems")

try:
    source_parameters, pcm = decode_audio(audio_path, pcm_audio_info)
    print(f"Decoded {pcm.shape[0]} samples of {source_parameters.codec_parameters.codec_name}")

    segmenter = Segmenter(sample_rate=pcm_audio_info.sample_rate)
    for segment in segmenter.plan(pcm.shape[0]):
        print(f"  segment {segment.index}: keep [{segment.useful_offset}, {segment.useful_end})")

    # Swap the vocals for silence and keep the accompaniment
    def mute_first_track(window):
        return [window * 0.0, window]

    vocals, accompaniment = segmenter.segment_and_infer(pcm, model, mute_first_track)
    encode_pcm(accompaniment, pcm_audio_info, source_parameters, "out/accompaniment.mp3")
except StemSplitterError as e:
    print(f"Error: {format_error_chain(e)}")
