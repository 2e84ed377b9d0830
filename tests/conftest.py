"""Shared fixtures: small audio files written with PyAV."""

import av
import numpy as np
import pytest


def generate_test_audio(duration=1.5, sr=44100, channels=2):
    """Generate a synthetic (samples, channels) float32 signal."""
    t = np.arange(int(sr * duration)) / sr
    tones = [
        0.5 * np.sin(2 * np.pi * (220 * (c + 1)) * t)
        + 0.2 * np.sin(2 * np.pi * 660 * t)
        for c in range(channels)
    ]
    return np.stack(tones, axis=1).astype(np.float32)


def write_audio_file(path, audio, sample_rate=44100, codec="pcm_s16le"):
    """Encode a (samples, channels) float32 signal into ``path``."""
    channels = audio.shape[1]
    layout = "mono" if channels == 1 else "stereo"
    with av.open(str(path), mode="w") as container:
        stream = container.add_stream(codec, rate=sample_rate)
        stream.codec_context.layout = layout
        stream.codec_context.format = av.Codec(codec, "w").audio_formats[0].name
        frame = av.AudioFrame.from_ndarray(
            np.ascontiguousarray(audio, dtype=np.float32).reshape(1, -1),
            format="flt",
            layout=layout,
        )
        frame.sample_rate = sample_rate
        frame.pts = 0
        for packet in stream.encode(frame):
            container.mux(packet)
        for packet in stream.encode(None):
            container.mux(packet)
    return path


@pytest.fixture
def stereo_audio():
    return generate_test_audio(duration=1.5)


@pytest.fixture
def wav_file(tmp_path, stereo_audio):
    return write_audio_file(tmp_path / "input.wav", stereo_audio)


@pytest.fixture
def flac_file(tmp_path, stereo_audio):
    return write_audio_file(tmp_path / "input.flac", stereo_audio, codec="flac")


@pytest.fixture
def mono_48k_wav_file(tmp_path):
    audio = generate_test_audio(duration=1.0, sr=48000, channels=1)
    return write_audio_file(tmp_path / "mono.wav", audio, sample_rate=48000)


@pytest.fixture
def make_audio_file(tmp_path):
    """Factory writing a synthetic stereo file; skips if the encoder is missing."""
    def make(codec, suffix, sample_rate=44100, duration=3.0):
        try:
            av.Codec(codec, "w")
        except ValueError:
            pytest.skip(f"encoder '{codec}' not available in this FFmpeg build")
        audio = generate_test_audio(duration=duration, sr=sample_rate)
        path = tmp_path / f"input_{codec}_{sample_rate}{suffix}"
        return write_audio_file(path, audio, sample_rate=sample_rate, codec=codec), audio

    return make


@pytest.fixture
def count_samples():
    """Function returning (sample_rate, samples per channel) of an audio file."""
    return _count_samples


def _count_samples(path):
    with av.open(str(path)) as container:
        stream = container.streams.audio[0]
        sample_rate = stream.codec_context.sample_rate
        num_samples = sum(
            frame.samples
            for packet in container.demux(stream)
            for frame in packet.decode()
        )
    return sample_rate, num_samples
