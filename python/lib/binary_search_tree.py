#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
binary_search_tree.py
---------------------

A plain (unbalanced) binary search tree mapping keys to values.

Every node keeps a back‑link to its parent, so in‑order navigation
(``node.next()`` / ``node.prev()``) never has to re‑descend from the root.
The tree is anchored on a **sentinel** node whose parent is itself; the real
root lives in the sentinel's ``LO`` slot.  Walking parents until the sentinel
is reached means "we left the tree", no ``None`` check needed.

Features
~~~~~~~~
* ``tree.insert(key, value)`` / ``tree[key] = value`` – upsert
* ``tree.get(key)``         – node holding *key* or ``None``
* ``node.next()``, ``node.prev()`` – successor / predecessor via parent links
* ``tree.delete(node)``     – remove a node by handle
* ``tree.visit(callback)``  – in‑order visitor with early termination
* ``tree.keys(cancel)``     – lazy, cancellable key stream
* ``tree.check(cancel)``    – lazy stream of nodes breaking the order
* ``tree.export(sink)``     – DOT description of the tree structure
* ``tree.validate()``       – strict invariant check (for debugging)

No rebalancing is ever performed; adversarial insertion order produces a
tree as deep as it is long.

Typical usage
~~~~~~~~~~~~~
>>> from binary_search_tree import BinarySearchTree
>>> bst = BinarySearchTree()
>>> for k in (3, 1, 5):
...     _ = bst.insert(k, -k)
>>> bst.get(1).next().key
3
>>> list(bst.keys())
[1, 3, 5]
>>> bst.delete(bst.get(3))
>>> bst.get(3) is None
True
"""

from __future__ import annotations

import logging
import operator
from threading import Event
from typing import (
    Any,
    BinaryIO,
    Callable,
    Generator,
    Generic,
    List,
    Optional,
    Set,
    Tuple,
    TypeVar,
)

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
#  Type variables (keys must be ordered by ``less``, values may be anything)
# ----------------------------------------------------------------------
K = TypeVar("K")
V = TypeVar("V")
R = TypeVar("R")

# ----------------------------------------------------------------------
#  Child slot indices
# ----------------------------------------------------------------------
LO = 0
HI = 1


def opposite(side: int) -> int:
    """Return the other child slot."""
    return HI - side


class LinkageError(AssertionError):
    """A node is not one of its parent's children: the tree is corrupted."""


class Node(Generic[K, V]):
    """
    A tree node.  ``children[LO]`` and ``children[HI]`` own the subtrees;
    ``parent`` is only a navigation link.

    A node built without a parent is a sentinel (its parent is itself).
    Nodes detached by ``BinarySearchTree.delete`` are reset to that state.
    """

    __slots__ = ("key", "value", "parent", "children")

    def __init__(
        self,
        key: Optional[K] = None,
        value: Optional[V] = None,
        parent: Optional["Node[K, V]"] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.parent: Node[K, V] = self if parent is None else parent
        self.children: List[Optional[Node[K, V]]] = [None, None]

    def __repr__(self) -> str:
        if self.is_sentinel():
            return "<Node sentinel>"
        return f"<Node {self.key!r}:{self.value!r}>"

    def is_sentinel(self) -> bool:
        return self.parent is self

    def side(self) -> int:
        """Return the slot (``LO`` or ``HI``) this node occupies in its parent."""
        parent = self.parent
        if parent.children[LO] is self:
            return LO
        if parent.children[HI] is self:
            return HI
        logger.error("Node %r is not a child of its parent %r", self, parent)
        raise LinkageError(f"{self!r} is not a child of {parent!r}")

    def _step(self, d: int) -> Optional["Node[K, V]"]:
        """Return the neighbour in direction *d* using only local links."""
        r = opposite(d)
        cur = self.children[d]
        if cur is not None:
            while cur.children[r] is not None:
                cur = cur.children[r]
            return cur

        # Climb while we are the d-side child; the first r-side link up
        # leads to the neighbour.
        cur = self
        while not cur.parent.is_sentinel() and cur.side() == d:
            cur = cur.parent
        if cur.parent.is_sentinel():
            return None
        return cur.parent

    def next(self) -> Optional["Node[K, V]"]:
        """Return the node with the next larger key, or ``None``."""
        return self._step(HI)

    def prev(self) -> Optional["Node[K, V]"]:
        """Return the node with the next smaller key, or ``None``."""
        return self._step(LO)


class BinarySearchTree(Generic[K, V]):
    """
    An ordered key → value container on an unbalanced binary search tree.

    Parameters
    ----------
    less : Callable[[K, K], bool], optional
        Strict ordering over keys.  Defaults to ``operator.lt``.  Two keys
        are equal when neither is less than the other.

    The tree is not thread safe; callers sharing one across threads must
    lock around every operation, streams included.
    """

    __slots__ = ("_sentinel", "_size", "_less")

    def __init__(self, *, less: Optional[Callable[[K, K], bool]] = None) -> None:
        self._sentinel: Node[K, V] = Node()
        self._size: int = 0
        self._less: Callable[[K, K], bool] = operator.lt if less is None else less

    # ------------------------------------------------------------------
    #   Structure accessors
    # ------------------------------------------------------------------
    @property
    def sentinel(self) -> Node[K, V]:
        return self._sentinel

    @property
    def root(self) -> Optional[Node[K, V]]:
        return self._sentinel.children[LO]

    # ------------------------------------------------------------------
    #   Lookup / insertion / deletion
    # ------------------------------------------------------------------
    def get(self, key: K) -> Optional[Node[K, V]]:
        """Return the node holding *key*, or ``None`` if there is none."""
        less = self._less
        cur = self._sentinel.children[LO]
        while cur is not None:
            if less(key, cur.key):
                cur = cur.children[LO]
            elif less(cur.key, key):
                cur = cur.children[HI]
            else:
                return cur
        return None

    def insert(self, key: K, value: V) -> Node[K, V]:
        """
        Insert *key* with *value*, or overwrite the value if *key* exists.
        Returns the node that holds *key* afterwards.
        """
        less = self._less
        parent = self._sentinel
        side = LO
        cur = parent.children[LO]
        while cur is not None:
            if less(key, cur.key):
                side = LO
            elif less(cur.key, key):
                side = HI
            else:
                logger.debug("Overwriting value of key %s", cur.key)
                cur.value = value
                return cur
            parent, cur = cur, cur.children[side]

        node: Node[K, V] = Node(key, value, parent)
        parent.children[side] = node
        self._size += 1
        logger.debug("Inserted key %s", key)
        return node

    def delete(self, node: Optional[Node[K, V]]) -> None:
        """
        Remove *node* from the tree.

        ``None``, the sentinel and nodes already detached are ignored.  When
        *node* has two children its in‑order successor's key and value are
        moved into it and the successor node is detached instead, so the
        handle stays in the tree holding the successor's entry.
        """
        if node is None or node.is_sentinel():
            return
        if node.children[HI] is None:
            self._splice(node, node.children[LO])
        elif node.children[LO] is None:
            self._splice(node, node.children[HI])
        else:
            successor = node.children[HI]
            while successor.children[LO] is not None:
                successor = successor.children[LO]
            node.key = successor.key
            node.value = successor.value
            # A leftmost node has no LO child, so this hits a simple case.
            self.delete(successor)

    def _splice(self, node: Node[K, V], child: Optional[Node[K, V]]) -> None:
        """Put *child* in *node*'s slot and detach *node*."""
        parent = node.parent
        parent.children[node.side()] = child
        if child is not None:
            child.parent = parent

        node.parent = node
        node.children = [None, None]
        self._size -= 1
        logger.debug("Detached key %s", node.key)

    # ------------------------------------------------------------------
    #   Traversal
    # ------------------------------------------------------------------
    def _walk(self) -> Generator[Node[K, V], None, None]:
        """Yield nodes in key order (explicit stack, any depth)."""
        stack: List[Node[K, V]] = []
        cur = self._sentinel.children[LO]
        while stack or cur is not None:
            while cur is not None:
                stack.append(cur)
                cur = cur.children[LO]
            cur = stack.pop()
            yield cur
            cur = cur.children[HI]

    def visit(self, callback: Callable[[Node[K, V]], Optional[R]]) -> Optional[R]:
        """
        Call *callback* on every node in key order.

        If the callback returns anything other than ``None`` the traversal
        stops at once and that value is returned.
        """
        for node in self._walk():
            signal = callback(node)
            if signal is not None:
                return signal
        return None

    def keys(self, cancel: Optional[Event] = None) -> Generator[K, None, None]:
        """
        Lazily yield keys in ascending order.

        The generator is single pass.  Once *cancel* is set it stops before
        handing over another key; abandoning it without cancelling is also
        safe since nothing runs in the background.
        """
        for node in self._walk():
            if cancel is not None and cancel.is_set():
                logger.debug("Key stream cancelled before key %s", node.key)
                return
            yield node.key

    def check(
        self, cancel: Optional[Event] = None
    ) -> Generator[Node[K, V], None, None]:
        """
        Lazily yield every node whose ``LO`` child key is not strictly less
        than its own key, or whose ``HI`` child key is not strictly greater.
        A well formed tree yields nothing.
        """
        less = self._less
        for node in self._walk():
            if cancel is not None and cancel.is_set():
                logger.debug("Check stream cancelled at key %s", node.key)
                return
            lo, hi = node.children
            bad_lo = lo is not None and not less(lo.key, node.key)
            bad_hi = hi is not None and not less(node.key, hi.key)
            if bad_lo or bad_hi:
                yield node

    # ------------------------------------------------------------------
    #   Diagnostics
    # ------------------------------------------------------------------
    def export(self, sink: BinaryIO) -> None:
        """
        Write a Graphviz DOT digraph of the parent → child links to *sink*.
        Write errors from the sink propagate; the tree is never modified.
        """
        sink.write(b"digraph treemap {\n")

        def write_edges(node: Node[K, V]) -> None:
            lo, hi = node.children
            if lo is not None:
                line = f'  {_dot_id(node)}:w -> {_dot_id(lo)}:n [label="lo"];\n'
                sink.write(line.encode("utf-8"))
            if hi is not None:
                line = f'  {_dot_id(node)}:e -> {_dot_id(hi)}:n [label="hi"];\n'
                sink.write(line.encode("utf-8"))

        self.visit(write_edges)
        sink.write(b"}\n")

    def height(self) -> int:
        """Number of nodes on the longest root‑to‑leaf path (0 when empty)."""
        level = [n for n in (self.root,) if n is not None]
        depth = 0
        while level:
            depth += 1
            level = [c for n in level for c in n.children if c is not None]
        return depth

    def validate(self) -> None:
        """
        Verify the full set of structural invariants.
        Raises ``AssertionError`` with a descriptive message on the first fault.

        Stricter than ``check``: every key is compared against the bounds
        inherited from all of its ancestors, and parent links, acyclicity
        and the stored size are verified too.
        """
        less = self._less
        sentinel = self._sentinel
        assert sentinel.parent is sentinel, "Sentinel lost its self-loop"
        assert sentinel.children[HI] is None, "Sentinel has a hi child"

        seen: Set[int] = set()
        # (node, expected parent, lower bound node, upper bound node)
        stack: List[
            Tuple[Node[K, V], Node[K, V], Optional[Node[K, V]], Optional[Node[K, V]]]
        ] = []
        if sentinel.children[LO] is not None:
            stack.append((sentinel.children[LO], sentinel, None, None))

        while stack:
            node, parent, lower, upper = stack.pop()
            assert id(node) not in seen, f"Node {node!r} reached twice"
            seen.add(id(node))
            assert node.parent is parent, f"Bad parent link on {node!r}"
            if lower is not None:
                assert less(lower.key, node.key), (
                    f"BST property violated ({node!r} not above {lower!r})"
                )
            if upper is not None:
                assert less(node.key, upper.key), (
                    f"BST property violated ({node!r} not below {upper!r})"
                )
            lo, hi = node.children
            if lo is not None:
                stack.append((lo, node, lower, node))
            if hi is not None:
                stack.append((hi, node, node, upper))

        assert len(seen) == self._size, (
            f"Size mismatch: {len(seen)} reachable, {self._size} recorded"
        )

    # ------------------------------------------------------------------
    #   Minimum / maximum
    # ------------------------------------------------------------------
    def min_node(self) -> Optional[Node[K, V]]:
        node = self.root
        if node is not None:
            while node.children[LO] is not None:
                node = node.children[LO]
        return node

    def max_node(self) -> Optional[Node[K, V]]:
        node = self.root
        if node is not None:
            while node.children[HI] is not None:
                node = node.children[HI]
        return node

    def min_key(self) -> K:
        """Return the smallest key stored in the tree."""
        node = self.min_node()
        if node is None:
            raise ValueError("Tree is empty")
        return node.key  # type: ignore[return-value]

    def max_key(self) -> K:
        """Return the largest key stored in the tree."""
        node = self.max_node()
        if node is None:
            raise ValueError("Tree is empty")
        return node.key  # type: ignore[return-value]

    # ------------------------------------------------------------------
    #   Mapping protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __getitem__(self, key: K) -> V:
        node = self.get(key)
        if node is None:
            raise KeyError(key)
        return node.value  # type: ignore[return-value]

    def __setitem__(self, key: K, value: V) -> None:
        self.insert(key, value)

    def __delitem__(self, key: K) -> None:
        node = self.get(key)
        if node is None:
            raise KeyError(key)
        self.delete(node)

    def __iter__(self) -> Generator[K, None, None]:
        return self.keys()

    def values(self) -> List[V]:
        """Return a list of all values in key order."""
        return [node.value for node in self._walk()]  # type: ignore[misc]

    def items(self) -> List[Tuple[K, V]]:
        """Return a list of ``(key, value)`` pairs in key order."""
        return [(node.key, node.value) for node in self._walk()]  # type: ignore[misc]

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"BinarySearchTree({{{items}}})"


def _dot_id(node: Node[Any, Any]) -> str:
    """Quoted DOT identifier built from the key's display form."""
    text = str(node.key).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'
