# canisterkit

Building blocks for certified data and ledger records:

- **Hash trees** (`canisterkit.hashtree`): the node kinds `Empty`, `Fork`,
  `Labeled`, `Leaf` and `Pruned`. `reconstruct()` computes a root hash with
  domain-separated SHA-256, and `to_cbor()` encodes a tree as CBOR. The
  helpers `fork`, `labeled`, `fork_hash`, `leaf_hash`, `labeled_hash` and
  `empty_hash` are also here.
- **Certified map** (`canisterkit.rbtree`): `RbTree` is a left-leaning
  red-black tree with byte keys that keeps a Merkle hash of its contents.
  It produces witnesses that prove a key is present or absent, and
  witnesses for key ranges, value ranges and key prefixes. The tree
  nodes and balancing are in `canisterkit.nodes`.
- **Ledger types** (`canisterkit.account`, `canisterkit.ledger`):
  `Principal`, `Subaccount` and `AccountIdentifier` with CRC-32 checksums.
  There are `Tokens` amounts and the records used in transfers and block
  queries (`TransferArgs`, `Block`, `Transaction`, `GetBlocksArgs`, ...).
  The error variants (`BadFee`, `InsufficientFunds`, `TxTooOld`,
  `TxCreatedInFuture`, `TxDuplicate`, `BadFirstBlockIndex`,
  `OtherBlocksError`) are also here.

## Installation

```
pip install canisterkit
```

## Certified map

```python
from canisterkit.hashtree import leaf_hash
from canisterkit.rbtree import RbTree

tree = RbTree()
tree.insert(b"counter", leaf_hash((1).to_bytes(4, "big")))

root = tree.root_hash()            # 32-byte digest to certify
witness = tree.witness(b"counter")
assert witness.reconstruct() == root

proof = witness.to_cbor(self_describe=True)   # bytes to send to a client
```

A value can be bytes, which are stored as a leaf. It can also be any object
with `root_hash()` and `as_hash_tree()` methods, such as another `RbTree`.

- `nested_witness(key, build)` lets `build` produce the witness for a value
  that is itself a map.
- `modify(key, update)` applies `update` to a stored value and refreshes the
  hashes. `update` either mutates the value or returns a new one.

A witness for a key that is absent still reconstructs to the same root hash.
In that case it proves that the key is not in the map. The other witnesses
are built by these methods:

- `keys()`
- `key_range(first, last)`
- `value_range(first, last)`
- `keys_with_prefix(prefix)`

Trees iterate over `(key, value)` pairs in key order. They compare by
those pairs.

## Hash trees

```python
from canisterkit.hashtree import Empty, Leaf, fork, labeled

t = fork(labeled(b"a", Leaf(b"hello")), Empty())
digest = t.reconstruct()
encoded = t.to_cbor()
```

## Account identifiers and tokens

```python
from canisterkit.account import DEFAULT_SUBACCOUNT, AccountIdentifier, Principal
from canisterkit.ledger import Tokens

owner = Principal.from_text("rrkah-fqaaa-aaaaa-aaaaq-cai")
account = AccountIdentifier.from_principal(owner, DEFAULT_SUBACCOUNT)
print(account.to_hex())

parsed = AccountIdentifier.from_hex(account.to_hex())
assert parsed == account

print(Tokens.from_e8s(150_000_000))  # 1.50000000
```

`AccountIdentifier.from_slice` accepts either of two inputs:

- a 32-byte identifier. Its checksum is verified, and a mismatch raises
  `ChecksumError`.
- a 28-byte hash. The checksum is computed and prepended.

Any other length raises `InvalidLengthError`. Both errors derive from
`AccountIdParseError`, which is a `ValueError`. `from_hex` raises
`ChecksumError` on a bad checksum. On bad hex or a wrong length it raises a
plain `ValueError`.

Adding or subtracting `Tokens` raises `OverflowError` when the result
leaves the unsigned 64-bit range.

## What this package does not do

The ledger module only holds value types. This package does not make
calls to a ledger or any other canister, and it does not encode or decode
Candid.

## Running the tests

```
pip install -e ".[test]"
pytest
```