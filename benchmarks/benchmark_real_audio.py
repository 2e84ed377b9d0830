"""Benchmark with real audio files.

This script times full separation runs (decode, segmented inference and
encode) on an actual audio file, optionally for several window sizes, to
show where the time goes and how the real-time factor holds up.
"""

import argparse
import sys
import tempfile
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stem_splitter import StemSplitter, StemSplitterError, identity_inference
from stem_splitter.errors import format_error_chain
from stem_splitter.profiler import PerformanceProfiler


def benchmark_audio_file(
    audio_path: str,
    model_name: str,
    models_dir: str,
    slice_seconds: int,
    extend_seconds: int,
    identity: bool,
    num_runs: int = 3,
):
    """Benchmark separation of a real audio file.

    Args:
        audio_path: Path to audio file
        model_name: Catalog model name
        models_dir: Directory containing the model bundles
        slice_seconds: Kept duration per inference window
        extend_seconds: Context duration per side
        identity: Skip the model and time only the transcoding path
        num_runs: Number of runs for averaging

    Returns:
        Dictionary of results, or None if every run failed
    """
    print(f"\n{'='*60}")
    print(f"Benchmarking: {audio_path}")
    print(f"Model: {model_name}{' (identity)' if identity else ''}, "
          f"window: {slice_seconds}s + 2x{extend_seconds}s")
    print(f"{'='*60}\n")

    try:
        splitter = StemSplitter(
            model_name,
            models_dir=models_dir,
            slice_seconds=slice_seconds,
            extend_seconds=extend_seconds,
        )
    except (StemSplitterError, TypeError, ValueError) as e:
        print(f"Failed to initialize splitter: {e}")
        return None

    infer_fn = identity_inference(splitter.model) if identity else None
    run_times = []
    info = None

    with tempfile.TemporaryDirectory() as output_dir:
        for run in range(num_runs):
            try:
                _, info = splitter.separate(audio_path, output_dir, infer_fn=infer_fn)
            except StemSplitterError as e:
                print(f"  Run {run+1} failed: {format_error_chain(e)}")
                continue
            run_times.append(info.processing_time)
            print(f"  Run {run+1}: {info.processing_time:.3f}s")

    if not run_times:
        print("All runs failed")
        return None

    avg_time = float(np.mean(run_times))
    std_time = float(np.std(run_times))
    stats = PerformanceProfiler.calculate_stats(
        audio_duration=info.duration,
        processing_time=avg_time,
        num_segments=info.num_segments,
        model_name=info.model_name,
    )

    print(f"\n{'='*60}")
    print("Results")
    print(f"{'='*60}")
    print(f"Audio duration:    {stats.audio_duration:.2f}s")
    print(f"Avg time:          {avg_time:.3f}s +/- {std_time:.3f}s")
    print(f"Min/Max time:      {min(run_times):.3f}s / {max(run_times):.3f}s")
    print(f"RTF:               {stats.rtf:.4f}")
    print(f"Throughput:        {stats.throughput:.1f}x realtime")
    print(f"Segments:          {stats.num_segments}")
    print(f"Tracks:            {', '.join(info.track_names)}")

    return {
        "audio_path": audio_path,
        "slice_seconds": slice_seconds,
        "avg_time": avg_time,
        "std_time": std_time,
        "rtf": stats.rtf,
        "throughput": stats.throughput,
        "num_segments": stats.num_segments,
    }


def compare_slice_sizes(args):
    """Compare window sizes on the same audio file."""
    results = []
    for slice_seconds in args.slice_seconds:
        result = benchmark_audio_file(
            audio_path=args.audio_path,
            model_name=args.model,
            models_dir=args.models_dir,
            slice_seconds=slice_seconds,
            extend_seconds=min(args.extend_seconds, slice_seconds),
            identity=args.identity,
            num_runs=args.runs,
        )
        if result:
            results.append(result)

    if len(results) > 1:
        print(f"\n{'='*60}")
        print("Comparison Summary")
        print(f"{'='*60}")
        print(f"{'Slice (s)':<12} {'Segments':<10} {'Time (s)':<12} {'RTF':<10}")
        print("-" * 60)
        for result in results:
            print(
                f"{result['slice_seconds']:<12} {result['num_segments']:<10} "
                f"{result['avg_time']:<12.3f} {result['rtf']:<10.4f}"
            )
        print()


def main():
    parser = argparse.ArgumentParser(description="Benchmark with real audio files")
    parser.add_argument(
        "audio_path",
        type=str,
        help="Path to audio file",
    )
    parser.add_argument(
        "--model",
        type=str,
        default="2stems",
        help="Model name (default: 2stems)",
    )
    parser.add_argument(
        "--models-dir",
        type=str,
        default="models/models",
        help="Directory containing the model bundles (default: models/models)",
    )
    parser.add_argument(
        "--slice-seconds",
        type=int,
        nargs="+",
        default=[30],
        help="Window sizes to compare (default: 30)",
    )
    parser.add_argument(
        "--extend-seconds",
        type=int,
        default=5,
        help="Context per side (default: 5)",
    )
    parser.add_argument(
        "--identity",
        action="store_true",
        help="Time only decode and encode, without a model",
    )
    parser.add_argument(
        "--runs",
        type=int,
        default=3,
        help="Number of runs for averaging (default: 3)",
    )

    args = parser.parse_args()

    if not Path(args.audio_path).exists():
        print(f"Error: Audio file not found: {args.audio_path}")
        return

    print("stem-splitter Real Audio Benchmark")
    print(f"Model: {args.model}")
    print(f"Runs: {args.runs}")

    compare_slice_sizes(args)


if __name__ == "__main__":
    main()
