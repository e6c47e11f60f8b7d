"""
Presentation of summary records: styled text for terminals, JSON for tools.
"""
import json

from rich.text import Text

from summary import OnnxSummary, SafetensorsSummary

BOLD = "bold"
INDENT = "    "
NO_FILENAME = "<NO FILENAME>"


def _line(text: Text, *parts):
    """Append one line; str parts are plain, (str, style) tuples are styled."""
    for part in parts:
        if isinstance(part, tuple):
            text.append(*part)
        else:
            text.append(part)
    text.append("\n")


def _render_onnx(s: OnnxSummary) -> Text:
    text = Text()
    _line(text, ("ONNX Model:", BOLD), f" {s.domain} {s.name} (v{s.version})")
    if s.doc_string:
        _line(text, s.doc_string)
    _line(text)

    _line(text, f"Producer: {s.producer_name} {s.producer_version}")
    _line(text)

    _line(text, f"IR Version: {s.ir_version}")
    if len(s.opsets) == 1:
        _line(text, f"Opset: {s.opsets[0].name} {s.opsets[0].version}")
    else:
        _line(text, "Opsets:")
        for opset in s.opsets:
            _line(text, f"{INDENT}{opset.name} {opset.version}")
    _line(text)

    _line(text, ("Inputs:", BOLD))
    for value in s.inputs:
        _line(text, f"{INDENT}{value.name}: {value.type}")
    _line(text, ("Outputs:", BOLD))
    for value in s.outputs:
        _line(text, f"{INDENT}{value.name}: {value.type}")
    _line(text)

    _line(text, ("Operators:", BOLD))
    for op in s.operators:
        _line(text, f"{INDENT}{op.domain}.{op.name}: {op.count}")
    return text


def _render_safetensors(s: SafetensorsSummary) -> Text:
    text = Text()
    _line(text, ("Safetensors:", BOLD), f" {s.filename or NO_FILENAME}")
    _line(text)
    if s.architecture is not None:
        _line(text, f"Architecture: {s.architecture}")
    if s.implementation is not None:
        _line(text, f"Implementation: {s.implementation}")
    _line(text, f"Tensors: {len(s.tensors)}")
    return text


def render_text(summary) -> Text:
    if isinstance(summary, OnnxSummary):
        return _render_onnx(summary)
    if isinstance(summary, SafetensorsSummary):
        return _render_safetensors(summary)
    raise TypeError(f"no text renderer for {type(summary).__name__}")


def render_json(summary) -> str:
    return json.dumps(summary.to_dict(), indent=2, allow_nan=False) + "\n"
