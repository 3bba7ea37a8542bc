import pytest

from canisterkit.hashtree import (
    Empty,
    Fork,
    Labeled,
    Leaf,
    Pruned,
    empty_hash,
    fork_hash,
    leaf_hash,
)
from canisterkit.nodes import (
    Color,
    Node,
    debug_view,
    delete,
    full_witness_tree,
    insert,
    is_balanced,
    is_red,
    iterate,
    three_way_fork,
    value_hash_tree,
    value_root_hash,
)


def _key(i):
    return i.to_bytes(8, "big")


def _build(n, order=None):
    root = None
    for i in order if order is not None else range(n):
        root = insert(root, _key(i), _key(i + 10))
    return root


def _check_hashes(node):
    if node is None:
        return True
    return (
        node.subtree_hash == node.compute_subtree_hash()
        and _check_hashes(node.left)
        and _check_hashes(node.right)
    )


def test_color_flip():
    assert Color.RED.flip() is Color.BLACK
    assert Color.BLACK.flip() is Color.RED


def test_value_root_hash_bytes():
    assert value_root_hash(b"abc") == leaf_hash(b"abc")
    assert value_hash_tree(b"abc") == Leaf(b"abc")


def test_value_root_hash_nested_object():
    class Nested:
        def root_hash(self):
            return empty_hash()

        def as_hash_tree(self):
            return Empty()

    assert value_root_hash(Nested()) == empty_hash()
    assert value_hash_tree(Nested()) == Empty()


def test_value_root_hash_rejects_unknown():
    with pytest.raises(TypeError):
        value_root_hash(42)
    with pytest.raises(TypeError):
        value_hash_tree(42)


def test_node_hash_trees_match_data_hash():
    node = Node(b"k", b"v")
    assert node.data_tree() == Labeled(b"k", Leaf(b"v"))
    assert node.data_tree().reconstruct() == node.data_hash()
    assert node.witness_tree().reconstruct() == node.data_hash()
    assert node.subtree_with(lambda v: Leaf(v)).reconstruct() == node.data_hash()
    assert node.subtree_hash == node.data_hash()
    assert node.left_hash_tree() == Empty()
    assert node.right_hash_tree() == Empty()


def test_node_child_hash_trees_are_pruned():
    root = _build(3)
    assert root.left_hash_tree() == Pruned(root.left.subtree_hash)
    assert root.right_hash_tree() == Pruned(root.right.subtree_hash)


def test_is_red():
    assert not is_red(None)
    assert is_red(Node(b"a", b"b"))
    assert not is_red(Node(b"a", b"b", color=Color.BLACK))


def test_three_way_fork_collapses():
    m = Leaf(b"m")
    assert three_way_fork(Empty(), m, Empty()) == m
    assert three_way_fork(Leaf(b"l"), m, Empty()) == Fork(Leaf(b"l"), m)
    assert three_way_fork(Empty(), m, Leaf(b"r")) == Fork(m, Leaf(b"r"))
    assert three_way_fork(Leaf(b"l"), m, Leaf(b"r")) == Fork(
        Leaf(b"l"), Fork(m, Leaf(b"r"))
    )


def test_three_way_fork_pruned_preserves_hash():
    a, b, c = (Pruned(leaf_hash(x)) for x in (b"a", b"b", b"c"))
    all_pruned = three_way_fork(a, b, c)
    assert isinstance(all_pruned, Pruned)
    assert all_pruned.digest == Fork(a, Fork(b, c)).reconstruct()

    partial = three_way_fork(Leaf(b"x"), b, c)
    assert partial == Fork(Leaf(b"x"), Pruned(fork_hash(b.digest, c.digest)))
    assert partial.reconstruct() == Fork(Leaf(b"x"), Fork(b, c)).reconstruct()


def test_full_witness_tree_empty():
    assert full_witness_tree(None, Node.data_tree) == Empty()


@pytest.mark.parametrize("n", [1, 2, 3, 7, 50])
def test_insert_keeps_invariants(n):
    root = _build(n)
    assert root.color is Color.BLACK
    assert is_balanced(root)
    assert _check_hashes(root)
    assert full_witness_tree(root, Node.data_tree).reconstruct() == root.subtree_hash
    assert full_witness_tree(root, Node.witness_tree).reconstruct() == root.subtree_hash


def test_iterate_in_order_regardless_of_insert_order():
    order = list(range(40))[::-1] + list(range(40))
    root = _build(40, order)
    assert list(iterate(root)) == [(_key(i), _key(i + 10)) for i in range(40)]
    assert list(iterate(None)) == []


def test_insert_replaces_value():
    root = _build(5)
    root = insert(root, _key(2), b"new")
    assert dict(iterate(root))[_key(2)] == b"new"
    assert len(list(iterate(root))) == 5
    assert _check_hashes(root)


def test_delete_every_key():
    root = _build(30)
    remaining = {_key(i) for i in range(30)}
    for i in [5, 0, 29, 14, 15] + list(range(30)):
        root = delete(root, _key(i))
        remaining.discard(_key(i))
        assert [k for k, _ in iterate(root)] == sorted(remaining)
        assert is_balanced(root)
        assert _check_hashes(root)
    assert root is None


def test_delete_absent_key_returns_same_root():
    root = _build(4)
    before = root.subtree_hash
    assert delete(root, b"missing") is root
    assert root.subtree_hash == before
    assert delete(None, b"x") is None


def test_is_balanced_detects_red_red():
    root = Node(b"b", b"1", color=Color.BLACK)
    root.left = Node(b"a", b"2")
    root.left.left = Node(b"0", b"3")
    assert not is_balanced(root)


def test_is_balanced_detects_black_height_mismatch():
    root = Node(b"b", b"1", color=Color.BLACK)
    root.left = Node(b"a", b"2", color=Color.BLACK)
    assert not is_balanced(root)
    assert is_balanced(None)


def test_debug_view():
    assert debug_view(None) == "[B] <null>\n"
    root = insert(None, b"\x01", b"v")
    assert debug_view(root) == "[B] [1]\n  [B] <null>\n  [B] <null>\n"


def test_debug_view_lists_every_node():
    root = _build(10)
    text = debug_view(root)
    assert sum(1 for line in text.splitlines() if "<null>" not in line) == 10
    assert text.splitlines()[0].startswith("[B]")