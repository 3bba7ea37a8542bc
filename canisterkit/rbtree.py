"""A certified map: a red-black tree whose contents can be proven with hash trees."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Optional

from canisterkit import nodes
from canisterkit.hashtree import Empty, HashTree, Pruned, empty_hash
from canisterkit.nodes import Node, full_witness_tree, three_way_fork, value_hash_tree

_NodeBuilder = Callable[[Node], HashTree]


@dataclass(frozen=True)
class KeyBound:
    """A key found while searching for a bound: the key itself or its nearest neighbor."""

    key: bytes
    exact: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", bytes(self.key))


def _cmp(a: bytes, b: bytes) -> int:
    return (a > b) - (a < b)


def _bound_tree(node: Node, bound: KeyBound, build: _NodeBuilder) -> HashTree:
    return build(node) if bound.exact else node.witness_tree()


def _range_above(node: Optional[Node], lo: KeyBound, build: _NodeBuilder) -> HashTree:
    if node is None:
        return Empty()
    order = _cmp(node.key, lo.key)
    if order == 0:
        return three_way_fork(
            node.left_hash_tree(),
            _bound_tree(node, lo, build),
            full_witness_tree(node.right, build),
        )
    if order < 0:
        return three_way_fork(
            node.left_hash_tree(),
            Pruned(node.data_hash()),
            _range_above(node.right, lo, build),
        )
    return three_way_fork(
        _range_above(node.left, lo, build),
        build(node),
        full_witness_tree(node.right, build),
    )


def _range_below(node: Optional[Node], hi: KeyBound, build: _NodeBuilder) -> HashTree:
    if node is None:
        return Empty()
    order = _cmp(node.key, hi.key)
    if order == 0:
        return three_way_fork(
            full_witness_tree(node.left, build),
            _bound_tree(node, hi, build),
            node.right_hash_tree(),
        )
    if order > 0:
        return three_way_fork(
            _range_below(node.left, hi, build),
            Pruned(node.data_hash()),
            node.right_hash_tree(),
        )
    return three_way_fork(
        full_witness_tree(node.left, build),
        build(node),
        _range_below(node.right, hi, build),
    )


def _range_between(
    node: Optional[Node], lo: KeyBound, hi: KeyBound, build: _NodeBuilder
) -> HashTree:
    if node is None:
        return Empty()
    lo_order = _cmp(lo.key, node.key)
    hi_order = _cmp(node.key, hi.key)
    if lo_order < 0 and hi_order < 0:
        return three_way_fork(
            _range_between(node.left, lo, hi, build),
            build(node),
            _range_between(node.right, lo, hi, build),
        )
    if lo_order == 0 and hi_order == 0:
        middle = build(node) if lo.exact or hi.exact else node.witness_tree()
        return three_way_fork(node.left_hash_tree(), middle, node.right_hash_tree())
    if hi_order == 0:
        return three_way_fork(
            _range_between(node.left, lo, hi, build),
            _bound_tree(node, hi, build),
            node.right_hash_tree(),
        )
    if lo_order == 0:
        return three_way_fork(
            node.left_hash_tree(),
            _bound_tree(node, lo, build),
            _range_between(node.right, lo, hi, build),
        )
    if lo_order < 0 and hi_order > 0:
        return three_way_fork(
            _range_between(node.left, lo, hi, build),
            Pruned(node.data_hash()),
            node.right_hash_tree(),
        )
    if lo_order > 0 and hi_order < 0:
        return three_way_fork(
            node.left_hash_tree(),
            Pruned(node.data_hash()),
            _range_between(node.right, lo, hi, build),
        )
    return Pruned(node.subtree_hash)


@total_ordering
class RbTree:
    """A map from byte keys to values, backed by a Merkle tree.

    Values are bytes or objects providing ``root_hash()`` and ``as_hash_tree()``,
    such as another :class:`RbTree`.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, items: Optional[Iterable[tuple[bytes, Any]]] = None) -> None:
        self._root: Optional[Node] = None
        for key, value in items or ():
            self.insert(key, value)

    def __bool__(self) -> bool:
        return self._root is not None

    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        """Iterate over ``(key, value)`` pairs in key order."""
        return nodes.iterate(self._root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RbTree):
            return NotImplemented
        return list(self) == list(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RbTree):
            return NotImplemented
        return list(self) < list(other)

    def __repr__(self) -> str:
        return "[" + ", ".join(f"({k!r}, {v!r})" for k, v in self) + "]"

    def items(self) -> Iterator[tuple[bytes, Any]]:
        """Iterate over ``(key, value)`` pairs in key order."""
        return iter(self)

    def get(self, key: bytes) -> Any:
        """Return the value stored under ``key``, or None."""
        key = bytes(key)
        node = self._root
        while node is not None:
            if key == node.key:
                return node.value
            node = node.left if key < node.key else node.right
        return None

    def insert(self, key: bytes, value: Any) -> None:
        """Insert or replace the entry for ``key``."""
        self._root = nodes.insert(self._root, key, value)

    def delete(self, key: bytes) -> None:
        """Remove ``key`` from the map; absent keys are ignored."""
        self._root = nodes.delete(self._root, key)

    def modify(self, key: bytes, update: Callable[[Any], Any]) -> None:
        """Apply ``update`` to the value under ``key``.

        ``update`` may mutate the value in place and return None, or return a
        replacement value. Hashes along the path are refreshed.
        """
        key = bytes(key)

        def go(node: Optional[Node]) -> None:
            if node is None:
                return
            if key == node.key:
                result = update(node.value)
                if result is not None:
                    node.value = result
            elif key < node.key:
                go(node.left)
            else:
                go(node.right)
            node.update_subtree_hash()

        go(self._root)

    def root_hash(self) -> bytes:
        """Root hash of the map's hash tree."""
        return empty_hash() if self._root is None else self._root.subtree_hash

    def as_hash_tree(self) -> HashTree:
        """The full hash tree of the map, with keys and values."""
        return full_witness_tree(self._root, Node.data_tree)

    def witness(self, key: bytes) -> HashTree:
        """Proof of presence of ``key`` with its value, or a proof of absence."""
        return self.nested_witness(key, value_hash_tree)

    def nested_witness(self, key: bytes, build: Callable[[Any], HashTree]) -> HashTree:
        """Like :meth:`witness`, with ``build`` producing the value's witness."""
        key = bytes(key)
        tree = self._lookup_and_build_witness(key, build)
        if tree is not None:
            return tree
        return self._range_witness(
            self.lower_bound(key), self.upper_bound(key), Node.witness_tree
        )

    def keys(self) -> HashTree:
        """Witness enumerating every key, with values pruned."""
        return full_witness_tree(self._root, Node.witness_tree)

    def key_range(self, first: bytes, last: bytes) -> HashTree:
        """Witness for the keys in ``[first, last]``, with values pruned."""
        return self._range_witness(
            self.lower_bound(first), self.upper_bound(last), Node.witness_tree
        )

    def value_range(self, first: bytes, last: bytes) -> HashTree:
        """Witness for the entries in ``[first, last]``, with values."""
        return self._range_witness(
            self.lower_bound(first), self.upper_bound(last), Node.data_tree
        )

    def keys_with_prefix(self, prefix: bytes) -> HashTree:
        """Witness enumerating the keys that start with ``prefix``."""
        return self._range_witness(
            self.lower_bound(prefix),
            self.right_prefix_neighbor(prefix),
            Node.witness_tree,
        )

    def lower_bound(self, key: bytes) -> Optional[KeyBound]:
        """The key itself if present, else the greatest smaller key."""
        key = bytes(key)
        best: Optional[KeyBound] = None
        node = self._root
        while node is not None:
            if node.key == key:
                return KeyBound(node.key, True)
            if node.key < key:
                best = KeyBound(node.key, False)
                node = node.right
            else:
                node = node.left
        return best

    def upper_bound(self, key: bytes) -> Optional[KeyBound]:
        """The key itself if present, else the smallest greater key."""
        key = bytes(key)
        best: Optional[KeyBound] = None
        node = self._root
        while node is not None:
            if node.key == key:
                return KeyBound(node.key, True)
            if node.key > key:
                best = KeyBound(node.key, False)
                node = node.left
            else:
                node = node.right
        return best

    def right_prefix_neighbor(self, prefix: bytes) -> Optional[KeyBound]:
        """The smallest key greater than ``prefix`` that does not start with it."""
        prefix = bytes(prefix)
        best: Optional[KeyBound] = None
        node = self._root
        while node is not None:
            if node.key > prefix and not node.key.startswith(prefix):
                best = KeyBound(node.key, False)
                node = node.left
            else:
                node = node.right
        return best

    def _range_witness(
        self,
        lo: Optional[KeyBound],
        hi: Optional[KeyBound],
        build: _NodeBuilder,
    ) -> HashTree:
        if lo is None and hi is None:
            return full_witness_tree(self._root, build)
        if hi is None:
            return _range_above(self._root, lo, build)
        if lo is None:
            return _range_below(self._root, hi, build)
        return _range_between(self._root, lo, hi, build)

    def _lookup_and_build_witness(
        self, key: bytes, build: Callable[[Any], HashTree]
    ) -> Optional[HashTree]:
        def go(node: Optional[Node]) -> Optional[HashTree]:
            if node is None:
                return None
            if key == node.key:
                return three_way_fork(
                    node.left_hash_tree(),
                    node.subtree_with(build),
                    node.right_hash_tree(),
                )
            if key < node.key:
                subtree = go(node.left)
                if subtree is None:
                    return None
                return three_way_fork(
                    subtree, Pruned(node.data_hash()), node.right_hash_tree()
                )
            subtree = go(node.right)
            if subtree is None:
                return None
            return three_way_fork(
                node.left_hash_tree(), Pruned(node.data_hash()), subtree
            )

        return go(self._root)