import enum
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

import onnx
from google.protobuf.message import DecodeError

from errors import MissingGraphError, ModelDecodeError
from summary import (
    OnnxOpset,
    OnnxSummary,
    ValueSummary,
    default_domain,
    operator_usage,
)
from .base_model import BaseModel
from .id_mapper import IdMapper
from .type_info import render_type

logger = logging.getLogger(__name__)

ValueId = int
NodeId = int
InitId = int


class SourceKind(enum.Enum):
    NODE = "node"
    INITIALIZER = "initializer"


@dataclass(frozen=True)
class ValueSource:
    kind: SourceKind
    index: int


@dataclass
class ValueInfo:
    """A named value slot. source stays None for true runtime inputs."""
    proto: onnx.ValueInfoProto
    source: Optional[ValueSource] = None

    @property
    def name(self) -> str:
        return self.proto.name

    @property
    def type_proto(self) -> Optional[onnx.TypeProto]:
        return self.proto.type if self.proto.HasField("type") else None

    def type_str(self) -> str:
        return render_type(self.type_proto)

    def set_source(self, source: ValueSource) -> bool:
        """Record provenance once. Returns False if it was already set."""
        if self.source is not None:
            return False
        self.source = source
        return True


@dataclass(frozen=True)
class NodeInfo:
    proto: onnx.NodeProto

    @property
    def op_type(self) -> str:
        return self.proto.op_type

    @property
    def domain(self) -> str:
        return default_domain(self.proto.domain)

    @property
    def label(self) -> str:
        return self.proto.name or self.proto.op_type


class OnnxModel(BaseModel):
    """
    ONNX model with its value-provenance and node-dependency graph.

    Construction runs four passes over the graph, in order:
      1. value_info entries become values with no source
      2. declared inputs (bound to an initializer when names match) and
         declared outputs become values
      3. every node output claims its value, first producer wins
      4. every node input resolved to a node-produced value adds an edge
    """

    def __init__(self, proto: onnx.ModelProto):
        if not proto.HasField("graph"):
            raise MissingGraphError("model has no top-level graph")

        self.proto = proto
        self.values: IdMapper[ValueInfo] = IdMapper()
        self.nodes: List[NodeInfo] = []
        self._inputs: List[ValueId] = []
        self._outputs: List[ValueId] = []
        # (producer, consumer) -> value id carried along the edge
        self._edges: Dict[Tuple[NodeId, NodeId], ValueId] = {}
        self._successors: Dict[NodeId, Set[NodeId]] = defaultdict(set)
        self._predecessors: Dict[NodeId, Set[NodeId]] = defaultdict(set)

        self._build()

    @classmethod
    def from_bytes(cls, data: bytes) -> "OnnxModel":
        proto = onnx.ModelProto()
        try:
            proto.ParseFromString(data)
        except DecodeError as e:
            raise ModelDecodeError(f"failed to decode ONNX model: {e}") from e
        return cls(proto)

    @property
    def format_name(self) -> str:
        return "onnx"

    @property
    def graph(self) -> onnx.GraphProto:
        return self.proto.graph

    def _build(self):
        graph = self.graph

        init_map: Dict[str, InitId] = {
            init.name: index for index, init in enumerate(graph.initializer)
        }

        # Pass 1: intermediate value declarations
        for value_info in graph.value_info:
            self.values.insert(value_info.name, ValueInfo(proto=value_info))

        # Pass 2: declared graph inputs and outputs
        for graph_input in graph.input:
            source = None
            if graph_input.name in init_map:
                source = ValueSource(SourceKind.INITIALIZER, init_map[graph_input.name])
            value_id = self.values.insert(
                graph_input.name, ValueInfo(proto=graph_input, source=source)
            )
            self._inputs.append(value_id)

        for graph_output in graph.output:
            value_id = self.values.insert(graph_output.name, ValueInfo(proto=graph_output))
            self._outputs.append(value_id)

        logger.debug(
            "registered %d values (%d inputs, %d outputs, %d initializers)",
            len(self.values), len(self._inputs), len(self._outputs), len(init_map),
        )

        # Pass 3: nodes claim the values they produce
        for node_id, node in enumerate(graph.node):
            self.nodes.append(NodeInfo(proto=node))
            for out in node.output:
                if not out:
                    continue  # omitted optional output
                value = self.values.get_by_name(out)
                if value is None:
                    continue
                if not value.set_source(ValueSource(SourceKind.NODE, node_id)):
                    logger.debug(
                        "node %d (%s) also produces %r, keeping %s %d",
                        node_id, node.op_type, out, value.source.kind.value, value.source.index,
                    )

        # Pass 4: dependency edges, now that every producer is known
        for node_id, node in enumerate(graph.node):
            for inp in node.input:
                if not inp:
                    continue  # omitted optional input
                value_id = self.values.get_id_by_name(inp)
                if value_id is None:
                    continue
                source = self.values.get_by_id(value_id).source
                if source is not None and source.kind is SourceKind.NODE:
                    self._add_edge(source.index, node_id, value_id)

        logger.debug("built graph with %d nodes and %d edges", len(self.nodes), len(self._edges))

    def _add_edge(self, src: NodeId, dst: NodeId, value_id: ValueId):
        self._edges[(src, dst)] = value_id
        self._successors[src].add(dst)
        self._predecessors[dst].add(src)

    def inputs(self) -> Iterator[ValueInfo]:
        """Every declared graph input, including initializer-backed ones."""
        return (self.values.get_by_id(value_id) for value_id in self._inputs)

    def true_inputs(self) -> Iterator[ValueInfo]:
        """Declared inputs that must be supplied by the caller."""
        return (value for value in self.inputs() if value.source is None)

    def outputs(self) -> Iterator[ValueInfo]:
        return (self.values.get_by_id(value_id) for value_id in self._outputs)

    @property
    def declared_input_count(self) -> int:
        return len(self._inputs)

    def edges(self) -> Iterator[Tuple[NodeId, NodeId, ValueId]]:
        return ((src, dst, value_id) for (src, dst), value_id in self._edges.items())

    def edge_value(self, src: NodeId, dst: NodeId) -> Optional[ValueId]:
        return self._edges.get((src, dst))

    def successors(self, node_id: NodeId) -> List[NodeId]:
        return sorted(self._successors.get(node_id, ()))

    def predecessors(self, node_id: NodeId) -> List[NodeId]:
        return sorted(self._predecessors.get(node_id, ()))

    def summary(self, filename: Optional[str] = None) -> OnnxSummary:
        proto = self.proto
        return OnnxSummary(
            domain=proto.domain,
            name=self.graph.name,
            version=proto.model_version,
            doc_string=proto.doc_string,
            producer_name=proto.producer_name,
            producer_version=proto.producer_version,
            ir_version=proto.ir_version,
            opsets=[
                OnnxOpset(name=default_domain(opset.domain), version=opset.version)
                for opset in proto.opset_import
            ],
            inputs=[ValueSummary(v.name, v.type_str()) for v in self.true_inputs()],
            outputs=[ValueSummary(v.name, v.type_str()) for v in self.outputs()],
            operators=operator_usage((n.domain, n.op_type) for n in self.nodes),
        )

    def to_dot(self) -> str:
        """Graphviz DOT text of the node dependency graph."""
        lines = ["digraph {"]
        for node_id, node in enumerate(self.nodes):
            lines.append(f"    {node_id} [ label = {_dot_quote(node.label)} ]")
        for src, dst, value_id in self.edges():
            value_name = self.values.get_by_id(value_id).name
            lines.append(f"    {src} -> {dst} [ label = {_dot_quote(value_name)} ]")
        lines.append("}")
        return "\n".join(lines) + "\n"


def _dot_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
