from .base_model import BaseModel
from .id_mapper import IdMapper
from .onnx_model import OnnxModel, ValueInfo, ValueSource, SourceKind, NodeInfo
from .safetensors_model import SafetensorsModel, parse_header
from .type_info import render_type, elem_type_name

__all__ = [
    "BaseModel",
    "IdMapper",
    "OnnxModel",
    "ValueInfo",
    "ValueSource",
    "SourceKind",
    "NodeInfo",
    "SafetensorsModel",
    "parse_header",
    "render_type",
    "elem_type_name",
]
