"""
Render ONNX type descriptors (TypeProto) as compact strings.

    f32[batch,128]
    sequence<i64[?]>
    map<string,f32>
    optional<sequence<f16[1,3,224,224]>>
"""
from typing import Optional

import onnx
from onnx import TensorProto

from errors import UnsupportedTypeError

MISSING_TYPE = "??"
UNKNOWN_DIM = "?"

# Keyed by TensorProto.DataType enum name so kinds missing from older onnx
# releases don't break the import.
ELEM_TYPE_NAMES = {
    "UNDEFINED":       "undefined",
    "FLOAT":           "f32",
    "UINT8":           "u8",
    "INT8":            "i8",
    "UINT16":          "u16",
    "INT16":           "i16",
    "INT32":           "i32",
    "INT64":           "i64",
    "STRING":          "string",
    "BOOL":            "bool",
    "FLOAT16":         "f16",
    "DOUBLE":          "f64",
    "UINT32":          "u32",
    "UINT64":          "u64",
    "COMPLEX64":       "complex64",
    "COMPLEX128":      "complex128",
    "BFLOAT16":        "bfloat16",
    "FLOAT8E4M3FN":    "f8e4m3fn",
    "FLOAT8E4M3FNUZ":  "f8e4m3fnuz",
    "FLOAT8E5M2":      "f8e5m2",
    "FLOAT8E5M2FNUZ":  "f8e5m2fnuz",
    "UINT4":           "u4",
    "INT4":            "i4",
    "FLOAT4E2M1":      "f4e2m1",
    "FLOAT8E8M0":      "f8e8m0",
    "UINT2":           "u2",
    "INT2":            "i2",
}


def elem_type_name(elem_type: int) -> str:
    """Short keyword for a TensorProto.DataType value, e.g. 1 -> 'f32'."""
    try:
        enum_name = TensorProto.DataType.Name(elem_type)
    except ValueError:
        raise UnsupportedTypeError(f"unknown tensor element type {elem_type}") from None
    return ELEM_TYPE_NAMES.get(enum_name, enum_name.lower())


def _render_dim(dim: onnx.TensorShapeProto.Dimension) -> str:
    which = dim.WhichOneof("value")
    if which == "dim_value":
        return str(dim.dim_value)
    if which == "dim_param":
        return dim.dim_param
    return UNKNOWN_DIM


def _render_tensor(tensor_type) -> str:
    text = elem_type_name(tensor_type.elem_type)
    dims = tensor_type.shape.dim if tensor_type.HasField("shape") else []
    if len(dims) > 0:
        text += "[" + ",".join(_render_dim(d) for d in dims) + "]"
    return text


def _render_inner(owner, field: str) -> str:
    # Nested element types are optional submessages; unset renders as '??'
    if owner.HasField(field):
        return render_type(getattr(owner, field))
    return MISSING_TYPE


def render_type(type_proto: Optional[onnx.TypeProto]) -> str:
    if type_proto is None:
        return MISSING_TYPE

    which = type_proto.WhichOneof("value")

    if which == "tensor_type":
        return _render_tensor(type_proto.tensor_type)

    if which == "sequence_type":
        return f"sequence<{_render_inner(type_proto.sequence_type, 'elem_type')}>"

    if which == "map_type":
        map_type = type_proto.map_type
        key = elem_type_name(map_type.key_type)
        return f"map<{key},{_render_inner(map_type, 'value_type')}>"

    if which == "optional_type":
        return f"optional<{_render_inner(type_proto.optional_type, 'elem_type')}>"

    if which == "sparse_tensor_type":
        raise UnsupportedTypeError("sparse tensor types are not supported")

    return MISSING_TYPE
