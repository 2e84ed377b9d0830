"""Command line interface for stem-splitter.

Usage:
    stem-splitter song.mp3 out/ --model-name 4stems --models-dir models/models
"""

import argparse
import logging
import sys
from typing import List, Optional

from .errors import StemSplitterError, format_error_chain
from .inference import identity_inference
from .models import DEFAULT_MODEL_NAME, available_models
from .stem_splitter import DEFAULT_MODELS_DIR, StemSplitter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stem-splitter",
        description="Separate an audio file into stems and re-encode them "
                    "in the format of the input",
    )
    parser.add_argument("input_path", help="Audio file to separate")
    parser.add_argument("output_dir", help="Directory for <track>.<ext> output files")
    parser.add_argument(
        "--model-name", "-m",
        default=DEFAULT_MODEL_NAME,
        choices=available_models(),
        help=f"Separation model (default: {DEFAULT_MODEL_NAME})",
    )
    parser.add_argument(
        "--models-dir", "-d",
        default=DEFAULT_MODELS_DIR,
        help=f"Directory containing one bundle per model (default: {DEFAULT_MODELS_DIR})",
    )
    parser.add_argument(
        "--identity",
        action="store_true",
        help="Skip the model and write the input into every track "
             "(checks the transcoding path)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        splitter = StemSplitter(args.model_name, models_dir=args.models_dir)
        infer_fn = identity_inference(splitter.model) if args.identity else None
        paths, _ = splitter.separate(args.input_path, args.output_dir, infer_fn=infer_fn)
    except StemSplitterError as e:
        print(f"Error: {format_error_chain(e)}", file=sys.stderr)
        return 1

    for path in paths:
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
