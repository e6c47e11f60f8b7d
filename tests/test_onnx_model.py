"""
Tests for OnnxModel graph construction: value provenance, true inputs and
dependency edges.
Run: python tests/test_onnx_model.py
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import onnx
import pytest
from onnx import helper, TensorProto

from errors import MissingGraphError, ModelDecodeError
from formats.onnx_model import OnnxModel, SourceKind
from toy_models.build_graph_models import (
    build_conv_relu,
    build_diamond,
    build_duplicate_producer,
    build_initializer_input,
    build_linear_chain,
    build_multi_domain,
)


def _names(values):
    return [v.name for v in values]


def test_linear_chain():
    """A → B: one edge, no true inputs, one output."""
    model = OnnxModel(build_linear_chain())

    edges = list(model.edges())
    a_out_id = model.values.get_id_by_name("a_out")
    assert edges == [(0, 1, a_out_id)], f"Expected one edge A→B, got {edges}"
    assert list(model.true_inputs()) == []
    assert _names(model.outputs()) == ["Y"]
    assert model.successors(0) == [1]
    assert model.predecessors(1) == [0]

    print(f"  ✓ linear_chain:       edges={edges}")


def test_initializer_input_is_not_a_true_input():
    model = OnnxModel(build_initializer_input())

    assert list(model.true_inputs()) == []
    assert model.declared_input_count == 1
    w = next(model.inputs())
    assert w.source.kind is SourceKind.INITIALIZER
    assert w.source.index == 0

    print("  ✓ initializer_input:  0 true inputs, 1 declared")


def test_conv_relu_mixed_inputs():
    model = OnnxModel(build_conv_relu())

    assert _names(model.inputs()) == ["X", "W"]
    assert _names(model.true_inputs()) == ["X"]
    assert model.declared_input_count == 2

    # Initializer-bound W and runtime X create no edges; only Conv → Relu
    edges = [(src, dst) for src, dst, _ in model.edges()]
    assert edges == [(0, 1)]

    c1 = model.values.get_by_name("c1")
    assert c1.source.kind is SourceKind.NODE and c1.source.index == 0
    y = model.values.get_by_name("Y")
    assert y.source.kind is SourceKind.NODE and y.source.index == 1

    print(f"  ✓ conv_relu:          true inputs={_names(model.true_inputs())}")


def test_diamond_edges():
    model = OnnxModel(build_diamond())

    edges = sorted((src, dst) for src, dst, _ in model.edges())
    assert edges == [(0, 1), (0, 2), (1, 3), (2, 3)]
    assert model.predecessors(3) == [1, 2]
    assert model.successors(0) == [1, 2]

    # Edge label is the value carried between the two nodes
    b_id = model.values.get_id_by_name("b")
    assert model.edge_value(1, 3) == b_id

    print(f"  ✓ diamond:            {len(edges)} edges")


def test_duplicate_producer_first_wins():
    model = OnnxModel(build_duplicate_producer())

    y = model.values.get_by_name("Y")
    assert y.source.kind is SourceKind.NODE
    assert y.source.index == 0, "First producer must keep ownership"

    edges = [(src, dst) for src, dst, _ in model.edges()]
    assert edges == [(0, 2)], f"Only the first producer feeds the consumer, got {edges}"
    print("  ✓ duplicate_producer: first writer kept")


def test_outputs_listed_regardless_of_provenance():
    """A declared output nobody produces is still an output."""
    X = helper.make_tensor_value_info("X", TensorProto.FLOAT, [1])
    Y = helper.make_tensor_value_info("Y", TensorProto.FLOAT, [1])
    orphan = helper.make_tensor_value_info("orphan", TensorProto.FLOAT, [1])
    node = helper.make_node("Relu", ["X"], ["Y"])
    graph = helper.make_graph([node], "orphan_output", [X], [Y, orphan])

    model = OnnxModel(helper.make_model(graph))
    assert _names(model.outputs()) == ["Y", "orphan"]
    assert model.values.get_by_name("orphan").source is None
    print("  ✓ unproduced output still listed")


def test_empty_optional_names_are_skipped():
    X = helper.make_tensor_value_info("X", TensorProto.FLOAT, [1])
    Y = helper.make_tensor_value_info("Y", TensorProto.FLOAT, [1])
    nodes = [
        helper.make_node("Dropout", ["X"], ["d", ""]),
        helper.make_node("Clip", ["d", "", ""], ["Y"]),
    ]
    d = helper.make_tensor_value_info("d", TensorProto.FLOAT, [1])
    graph = helper.make_graph(nodes, "optional_io", [X], [Y], value_info=[d])

    model = OnnxModel(helper.make_model(graph))
    assert [(s, t) for s, t, _ in model.edges()] == [(0, 1)]
    print("  ✓ empty optional names ignored")


def test_edges_only_after_all_producers_registered():
    """Consumer declared before its producer still gets its edge."""
    X = helper.make_tensor_value_info("X", TensorProto.FLOAT, [1])
    Y = helper.make_tensor_value_info("Y", TensorProto.FLOAT, [1])
    t = helper.make_tensor_value_info("t", TensorProto.FLOAT, [1])
    nodes = [
        helper.make_node("Relu", ["t"], ["Y"], name="consumer"),
        helper.make_node("Neg", ["X"], ["t"], name="producer"),
    ]
    graph = helper.make_graph(nodes, "out_of_order", [X], [Y], value_info=[t])

    model = OnnxModel(helper.make_model(graph))
    assert [(s, d) for s, d, _ in model.edges()] == [(1, 0)]
    print("  ✓ out-of-order producer resolved")


def test_missing_graph():
    with pytest.raises(MissingGraphError):
        OnnxModel(onnx.ModelProto(ir_version=8))
    print("  ✓ missing graph rejected")


def test_from_bytes_roundtrip_and_decode_error():
    data = build_diamond().SerializeToString()
    model = OnnxModel.from_bytes(data)
    assert len(model.nodes) == 4
    assert model.format_name == "onnx"

    with pytest.raises(ModelDecodeError):
        OnnxModel.from_bytes(b"\xff\xff\xff\xff\xff")
    print("  ✓ from_bytes decodes and rejects garbage")


def test_to_dot():
    dot = OnnxModel(build_diamond()).to_dot()
    assert dot.startswith("digraph {")
    assert '0 [ label = "relu" ]' in dot
    assert '1 -> 3 [ label = "b" ]' in dot
    assert dot.rstrip().endswith("}")
    print("  ✓ to_dot")


def test_node_domain_defaults_to_ai_onnx():
    model = OnnxModel(build_multi_domain())
    assert [n.domain for n in model.nodes] == [
        "ai.onnx", "com.microsoft", "ai.onnx", "ai.onnx", "com.microsoft", "ai.onnx",
    ]
    assert model.nodes[0].proto.domain == ""
    print("  ✓ empty node domain → ai.onnx")


if __name__ == "__main__":
    print("Running OnnxModel tests...\n")
    test_linear_chain()
    test_initializer_input_is_not_a_true_input()
    test_conv_relu_mixed_inputs()
    test_diamond_edges()
    test_duplicate_producer_first_wins()
    test_outputs_listed_regardless_of_provenance()
    test_empty_optional_names_are_skipped()
    test_edges_only_after_all_producers_registered()
    test_missing_graph()
    test_from_bytes_roundtrip_and_decode_error()
    test_to_dot()
    test_node_domain_defaults_to_ai_onnx()
    print("\n✅ All OnnxModel tests passed.")
