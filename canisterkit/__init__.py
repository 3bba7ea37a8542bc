"""Hash trees, a certified red-black map, and ledger account and transfer types."""

__version__ = "0.1.0"
__all__ = ["hashtree", "nodes", "rbtree", "account", "ledger"]