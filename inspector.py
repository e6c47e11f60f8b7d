"""
Summarize an ONNX or safetensors model file.

Usage:
    python inspector.py model.onnx
    python inspector.py model.safetensors --output json
    python inspector.py model.onnx --dot graph.dot
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from errors import (
    FormatDetectionError,
    MissingGraphError,
    ModelDecodeError,
    ModelInspectError,
    ModelIoError,
)
from formats import BaseModel, OnnxModel, SafetensorsModel
from render import render_json, render_text

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


def read_model_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise ModelIoError(f"cannot read {path}: {e.strerror or e}") from e


def load_model(data: bytes) -> BaseModel:
    """
    Detect the format by trial decoding: ONNX first, safetensors second.

    protobuf accepts many foreign byte strings without complaint, so a decode
    that yields no graph also falls through to the safetensors parser.
    """
    try:
        model = OnnxModel.from_bytes(data)
        logger.debug("detected ONNX model")
        return model
    except (ModelDecodeError, MissingGraphError) as e:
        onnx_error = e
        logger.debug("not ONNX: %s", e)

    try:
        model = SafetensorsModel.from_bytes(data)
    except ModelInspectError as e:
        raise FormatDetectionError(onnx_error, e) from e
    logger.debug("detected safetensors file")
    return model


def inspect(path: Path, output: str = "text", dot_path: Optional[Path] = None):
    """Load the file and return (model, rendered output)."""
    data = read_model_file(path)
    model = load_model(data)
    summary = model.summary(filename=path.name)

    if output == "json":
        rendered = render_json(summary)
    else:
        rendered = render_text(summary)

    if dot_path is not None:
        if isinstance(model, OnnxModel):
            dot_path.write_text(model.to_dot())
            logger.debug("wrote dependency graph to %s", dot_path)
        else:
            logger.warning("%s has no computation graph, skipping --dot", path.name)

    return model, rendered


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelpeek",
        description="Summarize an ONNX or safetensors model file",
        epilog=(
            "The file is tried as ONNX first, then as safetensors. A protobuf file "
            "without a top-level graph also falls back to safetensors; if "
            "that fails too, the error names both causes."
        ),
    )
    parser.add_argument("model_file", type=Path, help="Model file to load")
    parser.add_argument(
        "--output", choices=OUTPUT_FORMATS, default="text",
        help="Summary format (default: text)",
    )
    parser.add_argument(
        "--dot", type=Path, default=None, metavar="PATH",
        help="Also write the ONNX node dependency graph as Graphviz DOT",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log each build step to stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )

    try:
        _, rendered = inspect(args.model_file, output=args.output, dot_path=args.dot)
    except (ModelInspectError, OSError) as e:
        # OSError here means the --dot target was not writable
        err = Console(stderr=True)
        err.print(Text.assemble(("error:", "bold red"), f" {e}"), soft_wrap=True)
        return 1

    if isinstance(rendered, Text):
        Console().print(rendered, end="", soft_wrap=True, highlight=False)
    else:
        sys.stdout.write(rendered)
    return 0


if __name__ == "__main__":
    sys.exit(main())
