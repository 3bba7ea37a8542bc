import cbor2
import pytest

from canisterkit.hashtree import (
    Empty,
    Fork,
    Labeled,
    Leaf,
    Pruned,
    empty_hash,
    fork,
    fork_hash,
    labeled,
    labeled_hash,
    leaf_hash,
)

SPEC_HASH = "eb5c5b2195e62d996b84c9bcc8259d19a83786a2f59e0878cec84c811f669aa0"
SPEC_CBOR = (
    "8301830183024161830183018302417882034568656c6c6f810083024179820345776f726c64"
    "83024162820344676f6f648301830241638100830241648203476d6f726e696e67"
)


def spec_tree():
    return fork(
        fork(
            labeled(
                b"a",
                fork(
                    fork(labeled(b"x", Leaf(b"hello")), Empty()),
                    labeled(b"y", Leaf(b"world")),
                ),
            ),
            labeled(b"b", Leaf(b"good")),
        ),
        fork(labeled(b"c", Empty()), labeled(b"d", Leaf(b"morning"))),
    )


def test_public_spec_example_hash():
    assert spec_tree().reconstruct().hex() == SPEC_HASH


def test_public_spec_example_cbor():
    assert spec_tree().to_cbor().hex() == SPEC_CBOR


def test_self_describe_tag_prefix():
    encoded = spec_tree().to_cbor(self_describe=True)
    assert encoded[:3] == bytes.fromhex("d9d9f7")
    assert encoded[3:].hex() == SPEC_CBOR


def test_cbor_roundtrip_to_data():
    tree = spec_tree()
    assert cbor2.loads(tree.to_cbor()) == tree.to_data()


def test_to_data_shapes():
    digest = bytes(range(32))
    assert Empty().to_data() == [0]
    assert Leaf(b"v").to_data() == [3, b"v"]
    assert Pruned(digest).to_data() == [4, digest]
    assert labeled(b"k", Empty()).to_data() == [2, b"k", [0]]
    assert fork(Empty(), Leaf(b"v")).to_data() == [1, [0], [3, b"v"]]


def test_empty_hash_matches_empty_tree():
    assert Empty().reconstruct() == empty_hash()
    assert len(empty_hash()) == 32


def test_pruned_reconstruct_returns_digest():
    digest = bytes([7]) * 32
    assert Pruned(digest).reconstruct() == digest


@pytest.mark.parametrize("size", [0, 31, 33])
def test_pruned_rejects_wrong_length(size):
    with pytest.raises(ValueError):
        Pruned(bytes(size))


def test_pruning_subtree_preserves_root_hash():
    tree = spec_tree()
    left = tree.left
    pruned = Fork(Pruned(left.reconstruct()), tree.right)
    assert pruned.reconstruct() == tree.reconstruct()


def test_node_hashes_compose():
    leaf = Leaf(b"hello")
    assert leaf.reconstruct() == leaf_hash(b"hello")
    node = Labeled(b"x", leaf)
    assert node.reconstruct() == labeled_hash(b"x", leaf_hash(b"hello"))
    f = fork(node, Empty())
    assert f.reconstruct() == fork_hash(node.reconstruct(), empty_hash())


def test_domain_separation_distinguishes_node_kinds():
    hashes = {
        empty_hash(),
        leaf_hash(b""),
        labeled_hash(b"", empty_hash()),
        fork_hash(empty_hash(), empty_hash()),
    }
    assert len(hashes) == 4


def test_fork_order_matters():
    a, b = Leaf(b"a"), Leaf(b"b")
    assert fork(a, b).reconstruct() != fork(b, a).reconstruct()
    assert fork(a, b) == Fork(a, b)


def test_bytearray_inputs_are_normalised():
    assert Leaf(bytearray(b"v")) == Leaf(b"v")
    assert Labeled(bytearray(b"k"), Empty()).label == b"k"