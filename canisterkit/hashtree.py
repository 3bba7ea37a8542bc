"""Hash trees as used for certified data, with their root hashes and CBOR form."""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import cbor2

HASH_SIZE = 32
_SELF_DESCRIBE_TAG = 55799


def _domain_sep(name: str) -> "hashlib._Hash":
    encoded = name.encode()
    h = hashlib.sha256()
    h.update(bytes([len(encoded)]))
    h.update(encoded)
    return h


def fork_hash(left: bytes, right: bytes) -> bytes:
    """Hash of a fork whose children hash to ``left`` and ``right``."""
    h = _domain_sep("ic-hashtree-fork")
    h.update(left)
    h.update(right)
    return h.digest()


def leaf_hash(data: bytes) -> bytes:
    """Hash of a leaf holding ``data``."""
    h = _domain_sep("ic-hashtree-leaf")
    h.update(data)
    return h.digest()


def labeled_hash(label: bytes, content_hash: bytes) -> bytes:
    """Hash of a labeled node whose subtree hashes to ``content_hash``."""
    h = _domain_sep("ic-hashtree-labeled")
    h.update(label)
    h.update(content_hash)
    return h.digest()


def empty_hash() -> bytes:
    """Hash of the empty tree."""
    return _domain_sep("ic-hashtree-empty").digest()


class HashTree(ABC):
    """A node of a hash tree."""

    @abstractmethod
    def reconstruct(self) -> bytes:
        """Return the root hash of this tree."""

    @abstractmethod
    def to_data(self) -> list[Any]:
        """Return the tree as nested lists ready for CBOR encoding."""

    def to_cbor(self, self_describe: bool = False) -> bytes:
        """Encode the tree as CBOR, optionally with the self-describe tag."""
        data: Any = self.to_data()
        if self_describe:
            data = cbor2.CBORTag(_SELF_DESCRIBE_TAG, data)
        return cbor2.dumps(data)


@dataclass(frozen=True)
class Empty(HashTree):
    """No child nodes; a proof of absence."""

    def reconstruct(self) -> bytes:
        return empty_hash()

    def to_data(self) -> list[Any]:
        return [0]


@dataclass(frozen=True)
class Fork(HashTree):
    """Left and right child branches."""

    left: HashTree
    right: HashTree

    def reconstruct(self) -> bytes:
        return fork_hash(self.left.reconstruct(), self.right.reconstruct())

    def to_data(self) -> list[Any]:
        return [1, self.left.to_data(), self.right.to_data()]


@dataclass(frozen=True)
class Labeled(HashTree):
    """A labeled child node."""

    label: bytes
    tree: HashTree

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", bytes(self.label))

    def reconstruct(self) -> bytes:
        return labeled_hash(self.label, self.tree.reconstruct())

    def to_data(self) -> list[Any]:
        return [2, self.label, self.tree.to_data()]


@dataclass(frozen=True)
class Leaf(HashTree):
    """A leaf node holding a value."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def reconstruct(self) -> bytes:
        return leaf_hash(self.data)

    def to_data(self) -> list[Any]:
        return [3, self.data]


@dataclass(frozen=True)
class Pruned(HashTree):
    """A branch removed from this view of the tree, known only by its hash."""

    digest: bytes

    def __post_init__(self) -> None:
        digest = bytes(self.digest)
        if len(digest) != HASH_SIZE:
            raise ValueError(
                f"pruned digest must be {HASH_SIZE} bytes, got {len(digest)}"
            )
        object.__setattr__(self, "digest", digest)

    def reconstruct(self) -> bytes:
        return self.digest

    def to_data(self) -> list[Any]:
        return [4, self.digest]


def fork(left: HashTree, right: HashTree) -> Fork:
    """Shorthand for :class:`Fork`."""
    return Fork(left, right)


def labeled(label: bytes, tree: HashTree) -> Labeled:
    """Shorthand for :class:`Labeled`."""
    return Labeled(label, tree)