"""Nodes of a left-leaning red-black tree whose subtrees carry hash-tree digests."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from canisterkit.hashtree import (
    Empty,
    HashTree,
    Leaf,
    Pruned,
    fork,
    fork_hash,
    labeled,
    labeled_hash,
    leaf_hash,
)

_BYTES_TYPES = (bytes, bytearray, memoryview)


def value_root_hash(value: Any) -> bytes:
    """Root hash of a stored value: a leaf hash for bytes, else ``value.root_hash()``."""
    if isinstance(value, _BYTES_TYPES):
        return leaf_hash(bytes(value))
    root_hash = getattr(value, "root_hash", None)
    if root_hash is None:
        raise TypeError(f"cannot hash value of type {type(value).__name__}")
    return root_hash()


def value_hash_tree(value: Any) -> HashTree:
    """Hash tree of a stored value: a leaf for bytes, else ``value.as_hash_tree()``."""
    if isinstance(value, _BYTES_TYPES):
        return Leaf(bytes(value))
    as_hash_tree = getattr(value, "as_hash_tree", None)
    if as_hash_tree is None:
        raise TypeError(f"cannot build a hash tree for type {type(value).__name__}")
    return as_hash_tree()


class Color(enum.Enum):
    """Color of a red-black tree node."""

    RED = "R"
    BLACK = "B"

    def flip(self) -> "Color":
        """Return the opposite color."""
        return Color.BLACK if self is Color.RED else Color.RED


@dataclass(eq=False)
class Node:
    """A tree node; ``subtree_hash`` covers the node and all its descendants."""

    key: bytes
    value: Any
    left: Optional["Node"] = None
    right: Optional["Node"] = None
    color: Color = Color.RED
    subtree_hash: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.key = bytes(self.key)
        self.update_subtree_hash()

    def data_hash(self) -> bytes:
        """Hash of this node's labeled key and value."""
        return labeled_hash(self.key, value_root_hash(self.value))

    def compute_subtree_hash(self) -> bytes:
        """Compute the hash of the full hash tree rooted at this node."""
        h = self.data_hash()
        left, right = self.left, self.right
        if left is None and right is None:
            return h
        if right is None:
            return fork_hash(left.subtree_hash, h)
        if left is None:
            return fork_hash(h, right.subtree_hash)
        return fork_hash(left.subtree_hash, fork_hash(h, right.subtree_hash))

    def update_subtree_hash(self) -> None:
        """Recompute and store the subtree hash."""
        self.subtree_hash = self.compute_subtree_hash()

    def data_tree(self) -> HashTree:
        """Labeled tree holding the key and the value's full hash tree."""
        return labeled(self.key, value_hash_tree(self.value))

    def witness_tree(self) -> HashTree:
        """Labeled tree holding the key and only the value's hash."""
        return labeled(self.key, Pruned(value_root_hash(self.value)))

    def subtree_with(self, build: Callable[[Any], HashTree]) -> HashTree:
        """Labeled tree holding the key and ``build(value)``."""
        return labeled(self.key, build(self.value))

    def left_hash_tree(self) -> HashTree:
        """The left child pruned to its hash, or empty."""
        return Empty() if self.left is None else Pruned(self.left.subtree_hash)

    def right_hash_tree(self) -> HashTree:
        """The right child pruned to its hash, or empty."""
        return Empty() if self.right is None else Pruned(self.right.subtree_hash)


def is_red(node: Optional[Node]) -> bool:
    """True if ``node`` exists and is red."""
    return node is not None and node.color is Color.RED


def three_way_fork(left: HashTree, middle: HashTree, right: HashTree) -> HashTree:
    """Join three subtrees, collapsing empty and fully pruned parts."""
    left_empty = isinstance(left, Empty)
    right_empty = isinstance(right, Empty)
    if left_empty and right_empty:
        return middle
    if right_empty:
        return fork(left, middle)
    if left_empty:
        return fork(middle, right)
    if isinstance(middle, Pruned) and isinstance(right, Pruned):
        tail = fork_hash(middle.digest, right.digest)
        if isinstance(left, Pruned):
            return Pruned(fork_hash(left.digest, tail))
        return fork(left, Pruned(tail))
    return fork(left, fork(middle, right))


def full_witness_tree(
    node: Optional[Node], build: Callable[[Node], HashTree]
) -> HashTree:
    """Hash tree of a whole subtree, with ``build`` producing each node's part."""
    if node is None:
        return Empty()
    return three_way_fork(
        full_witness_tree(node.left, build),
        build(node),
        full_witness_tree(node.right, build),
    )


def iterate(node: Optional[Node]) -> Iterator[tuple[bytes, Any]]:
    """Yield ``(key, value)`` pairs of a subtree in key order."""
    stack: list[Node] = []
    while stack or node is not None:
        while node is not None:
            stack.append(node)
            node = node.left
        node = stack.pop()
        yield node.key, node.value
        node = node.right


def _rotate_right(h: Node) -> Node:
    x = h.left
    assert x is not None and x.color is Color.RED
    h.left = x.right
    h.update_subtree_hash()
    x.right = h
    x.color = h.color
    h.color = Color.RED
    x.update_subtree_hash()
    return x


def _rotate_left(h: Node) -> Node:
    x = h.right
    assert x is not None and x.color is Color.RED
    h.right = x.left
    h.update_subtree_hash()
    x.left = h
    x.color = h.color
    h.color = Color.RED
    x.update_subtree_hash()
    return x


def _flip_colors(h: Node) -> None:
    h.color = h.color.flip()
    h.left.color = h.left.color.flip()
    h.right.color = h.right.color.flip()


def _balance(h: Node) -> Node:
    if is_red(h.right) and not is_red(h.left):
        h = _rotate_left(h)
    if is_red(h.left) and is_red(h.left.left):
        h = _rotate_right(h)
    if is_red(h.left) and is_red(h.right):
        _flip_colors(h)
    return h


def _insert(h: Optional[Node], key: bytes, value: Any) -> Node:
    if h is None:
        return Node(key, value)
    if key == h.key:
        h.value = value
    elif key < h.key:
        h.left = _insert(h.left, key, value)
    else:
        h.right = _insert(h.right, key, value)
    h.update_subtree_hash()
    return _balance(h)


def insert(root: Optional[Node], key: bytes, value: Any) -> Node:
    """Insert or replace ``key`` and return the new root."""
    new_root = _insert(root, bytes(key), value)
    new_root.color = Color.BLACK
    return new_root


def _move_red_left(h: Node) -> Node:
    _flip_colors(h)
    if is_red(h.right.left):
        h.right = _rotate_right(h.right)
        h = _rotate_left(h)
        _flip_colors(h)
    return h


def _move_red_right(h: Node) -> Node:
    _flip_colors(h)
    if is_red(h.left.left):
        h = _rotate_right(h)
        _flip_colors(h)
    return h


def _min_node(h: Node) -> Node:
    while h.left is not None:
        h = h.left
    return h


def _delete_min(h: Node) -> Optional[Node]:
    if h.left is None:
        return None
    if not is_red(h.left) and not is_red(h.left.left):
        h = _move_red_left(h)
    h.left = _delete_min(h.left)
    h.update_subtree_hash()
    return _balance(h)


def _delete(h: Node, key: bytes) -> Optional[Node]:
    if key < h.key:
        if not is_red(h.left) and not is_red(h.left.left):
            h = _move_red_left(h)
        h.left = _delete(h.left, key)
    else:
        if is_red(h.left):
            h = _rotate_right(h)
        if key == h.key and h.right is None:
            return None
        if not is_red(h.right) and not is_red(h.right.left):
            h = _move_red_right(h)
        if key == h.key:
            m = _min_node(h.right)
            h.key, m.key = m.key, h.key
            h.value, m.value = m.value, h.value
            h.right = _delete_min(h.right)
        else:
            h.right = _delete(h.right, key)
    h.update_subtree_hash()
    return _balance(h)


def _contains(node: Optional[Node], key: bytes) -> bool:
    while node is not None:
        if key == node.key:
            return True
        node = node.left if key < node.key else node.right
    return False


def delete(root: Optional[Node], key: bytes) -> Optional[Node]:
    """Remove ``key`` if present and return the new root."""
    key = bytes(key)
    if not _contains(root, key):
        return root
    if not is_red(root.left) and not is_red(root.right):
        root.color = Color.RED
    new_root = _delete(root, key)
    if new_root is not None:
        new_root.color = Color.BLACK
    return new_root


def is_balanced(root: Optional[Node]) -> bool:
    """Check that no red node has a red child and all paths share a black height."""
    black_height = 0
    node = root
    while node is not None:
        if not is_red(node):
            black_height += 1
        node = node.left

    def check(node: Optional[Node], remaining: int) -> bool:
        if node is None:
            return remaining == 0
        if is_red(node):
            if is_red(node.left) or is_red(node.right):
                return False
        else:
            if remaining == 0:
                return False
            remaining -= 1
        return check(node.left, remaining) and check(node.right, remaining)

    return check(root, black_height)


def debug_view(root: Optional[Node]) -> str:
    """Render the tree structure with node colors, one node per line."""
    lines: list[str] = []

    def walk(node: Optional[Node], offset: int) -> None:
        pad = " " * offset
        if node is None:
            lines.append(f"{pad}[B] <null>")
            return
        lines.append(f"{pad}[{node.color.value}] {list(node.key)}")
        walk(node.left, offset + 2)
        walk(node.right, offset + 2)

    walk(root, 0)
    return "".join(line + "\n" for line in lines)