"""One side of the order book: a crit-bit tree of resting orders in a fixed node pool."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional, Union

from perpbook.nodes import InnerNode, LeafNode, NodeHandle
from perpbook.types import Side

MAX_BOOK_NODES = 1024

_KEY_BITS = 128
_KEY_MASK = (1 << _KEY_BITS) - 1
_U32_MAX = 0xFFFFFFFF


@dataclass
class _FreeNode:
    """A slot on the free list; ``last`` marks the final entry."""

    next: NodeHandle
    last: bool


_Slot = Union[None, _FreeNode, InnerNode, LeafNode]


class OutOfSpaceError(Exception):
    """Raised when the node pool of a book side has no room for another order."""


def _shared_prefix_len(a: int, b: int) -> int:
    return _KEY_BITS - ((a ^ b) & _KEY_MASK).bit_length()


class BookSide:
    """Resting orders of one side, kept in key order in a pool of ``capacity`` nodes."""

    def __init__(self, side: Side, capacity: int = MAX_BOOK_NODES) -> None:
        if not 0 < capacity <= _U32_MAX:
            raise ValueError(f"capacity must be in 1..{_U32_MAX}, got {capacity}")
        self.side = Side(side)
        self._nodes: list[_Slot] = [None] * capacity
        self._bump_index = 0
        self._free_list_len = 0
        self._free_list_head: NodeHandle = 0
        self._root_node: NodeHandle = 0
        self._leaf_count = 0

    @property
    def capacity(self) -> int:
        return len(self._nodes)

    @property
    def root(self) -> Optional[NodeHandle]:
        """Handle of the root node, or None when the side is empty."""
        return self._root_node if self._leaf_count else None

    def __len__(self) -> int:
        return self._leaf_count

    def __iter__(self) -> Iterator[LeafNode]:
        """Orders best first: highest key first for bids, lowest first for asks."""
        if self._leaf_count == 0:
            return
        left, right = (1, 0) if self.side is Side.BID else (0, 1)
        stack: list[InnerNode] = []
        current = self._root_node
        while True:
            node = self._node(current)
            if isinstance(node, InnerNode):
                stack.append(node)
                current = node.children[left]
                continue
            yield node
            if not stack:
                return
            current = stack.pop().children[right]

    def _get(self, handle: NodeHandle) -> Optional[Union[InnerNode, LeafNode]]:
        node = self._nodes[handle]
        if isinstance(node, (InnerNode, LeafNode)):
            return node
        return None

    def _node(self, handle: NodeHandle) -> Union[InnerNode, LeafNode]:
        node = self._get(handle)
        if node is None:
            raise RuntimeError(f"book side is corrupt: no live node at handle {handle}")
        return node

    def leaf_at(self, handle: NodeHandle) -> Optional[LeafNode]:
        """The order stored at ``handle``, or None if that slot holds no order."""
        node = self._nodes[handle]
        return node if isinstance(node, LeafNode) else None

    def _find_min_max(self, find_max: bool) -> Optional[NodeHandle]:
        handle = self.root
        if handle is None:
            return None
        index = 1 if find_max else 0
        while True:
            node = self._node(handle)
            if isinstance(node, InnerNode):
                handle = node.children[index]
            else:
                return handle

    def find_min(self) -> Optional[NodeHandle]:
        """Handle of the order with the lowest key."""
        return self._find_min_max(False)

    def find_max(self) -> Optional[NodeHandle]:
        """Handle of the order with the highest key."""
        return self._find_min_max(True)

    def _get_min_max(self, find_max: bool) -> Optional[LeafNode]:
        handle = self.root
        if handle is None:
            return None
        index = 1 if find_max else 0
        while True:
            node = self._get(handle)
            if node is None:
                return None
            if isinstance(node, InnerNode):
                handle = node.children[index]
            else:
                return node

    def get_min(self) -> Optional[LeafNode]:
        """The order with the lowest key."""
        return self._get_min_max(False)

    def get_max(self) -> Optional[LeafNode]:
        """The order with the highest key."""
        return self._get_min_max(True)

    def remove_min(self) -> Optional[LeafNode]:
        """Remove and return the order with the lowest key."""
        leaf = self.get_min()
        return None if leaf is None else self.remove_by_key(leaf.key)

    def remove_max(self) -> Optional[LeafNode]:
        """Remove and return the order with the highest key."""
        leaf = self.get_max()
        return None if leaf is None else self.remove_by_key(leaf.key)

    def price_quantities(self, reverse: bool) -> list[tuple[int, int]]:
        """(price, quantity) of every order, ascending by key, or descending if ``reverse``."""
        result: list[tuple[int, int]] = []
        handle = self.root
        if handle is None:
            return result
        left, right = int(reverse), int(not reverse)
        stack: list[InnerNode] = []
        while True:
            node = self._node(handle)
            if isinstance(node, InnerNode):
                stack.append(node)
                handle = node.children[left]
                continue
            result.append((node.price(), node.quantity))
            if not stack:
                return result
            handle = stack.pop().children[right]

    def remove_by_key(self, key: int) -> Optional[LeafNode]:
        """Remove and return the order with ``key``, or None if there is none."""
        parent_h = self.root
        if parent_h is None:
            return None
        node = self._node(parent_h)
        if isinstance(node, LeafNode):
            if node.key != key:
                return None
            assert self._leaf_count == 1
            self._root_node = 0
            self._leaf_count = 0
            self._remove(parent_h)
            return node

        child_h, crit_bit = node.walk_down(key)
        while True:
            child = self._node(child_h)
            if isinstance(child, InnerNode):
                parent_h = child_h
                child_h, crit_bit = child.walk_down(key)
                continue
            if child.key != key:
                return None
            break

        parent = self._node(parent_h)
        assert isinstance(parent, InnerNode)
        other_child_h = parent.children[int(not crit_bit)]
        self._nodes[parent_h] = self._remove(other_child_h)
        self._leaf_count -= 1
        removed = self._remove(child_h)
        assert isinstance(removed, LeafNode)
        return removed

    def _remove(self, handle: NodeHandle) -> Optional[Union[InnerNode, LeafNode]]:
        node = self._get(handle)
        if node is None:
            return None
        self._nodes[handle] = _FreeNode(next=self._free_list_head, last=self._free_list_len == 0)
        self._free_list_len += 1
        self._free_list_head = handle
        return node

    def _insert(self, node: Union[InnerNode, LeafNode]) -> NodeHandle:
        if self._free_list_len == 0:
            if not (self._bump_index < len(self._nodes) and self._bump_index < _U32_MAX):
                raise OutOfSpaceError("book side is out of space")
            handle = self._bump_index
            self._nodes[handle] = node
            self._bump_index += 1
            return handle

        handle = self._free_list_head
        free = self._nodes[handle]
        assert isinstance(free, _FreeNode)
        if free.last:
            assert self._free_list_len == 1
        else:
            assert self._free_list_len > 1
        self._free_list_head = free.next
        self._free_list_len -= 1
        self._nodes[handle] = node
        return handle

    def insert_leaf(self, leaf: LeafNode) -> tuple[NodeHandle, Optional[LeafNode]]:
        """Add an order; returns its handle and the order it replaced, if its key was taken."""
        root = self.root
        if root is None:
            handle = self._insert(leaf)
            self._root_node = handle
            self._leaf_count = 1
            return handle, None

        while True:
            root_contents = self._node(root)
            if root_contents.key == leaf.key and isinstance(root_contents, LeafNode):
                self._nodes[root] = leaf
                return root, root_contents

            shared_prefix_len = _shared_prefix_len(root_contents.key, leaf.key)
            if isinstance(root_contents, InnerNode) and shared_prefix_len >= root_contents.prefix_len:
                root = root_contents.walk_down(leaf.key)[0]
                continue

            crit_bit_mask = 1 << (_KEY_BITS - 1 - shared_prefix_len)
            new_leaf_crit_bit = (crit_bit_mask & leaf.key) != 0

            new_leaf_handle = self._insert(leaf)
            try:
                moved_root_handle = self._insert(root_contents)
            except OutOfSpaceError:
                self._remove(new_leaf_handle)
                raise

            new_root = InnerNode(shared_prefix_len, leaf.key)
            new_root.children[int(new_leaf_crit_bit)] = new_leaf_handle
            new_root.children[int(not new_leaf_crit_bit)] = moved_root_handle
            self._nodes[root] = new_root
            self._leaf_count += 1
            return new_leaf_handle, None

    def is_full(self) -> bool:
        """True when the pool may not have room for another order."""
        return self._free_list_len <= 1 and self._bump_index >= len(self._nodes) - 1