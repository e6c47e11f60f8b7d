"""
Immutable summary records produced by BaseModel.summary().
Presentation lives in render.py; these are plain data.
"""
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

DEFAULT_DOMAIN = "ai.onnx"


def default_domain(domain: str) -> str:
    """The empty domain is the canonical ONNX operator set."""
    return domain if domain else DEFAULT_DOMAIN


@dataclass(frozen=True)
class OnnxOpset:
    name: str
    version: int


@dataclass(frozen=True)
class ValueSummary:
    name: str
    type: str


@dataclass(frozen=True)
class OperatorUsage:
    domain: str
    name: str
    count: int


def operator_usage(ops: Iterable[Tuple[str, str]]) -> List[OperatorUsage]:
    """
    Count (domain, op_type) pairs, most used first.
    Domains are defaulted before grouping, so '' and 'ai.onnx' merge.
    Ties keep the order in which the operator was first seen.
    """
    counts = Counter((default_domain(domain), op_type) for domain, op_type in ops)
    return [
        OperatorUsage(domain=domain, name=name, count=count)
        for (domain, name), count in counts.most_common()
    ]


@dataclass(frozen=True)
class OnnxSummary:
    domain: str
    name: str
    version: int
    doc_string: str
    producer_name: str
    producer_version: str
    ir_version: int
    opsets: List[OnnxOpset] = field(default_factory=list)
    inputs: List[ValueSummary] = field(default_factory=list)
    outputs: List[ValueSummary] = field(default_factory=list)
    operators: List[OperatorUsage] = field(default_factory=list)

    format = "onnx"

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, **asdict(self)}


@dataclass(frozen=True)
class SafetensorsSummary:
    filename: Optional[str]
    architecture: Optional[str]
    implementation: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)
    tensors: Dict[str, Any] = field(default_factory=dict)

    format = "safetensors"

    def to_dict(self) -> Dict[str, Any]:
        return {"format": self.format, **asdict(self)}
