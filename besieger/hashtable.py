"""Chained hash table keyed by strings, hashed with 32-bit FNV-1a."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

FNV1_32_INIT = 2166136261
_FNV_32_PRIME = 16777619
_MASK32 = 0xFFFFFFFF
DEFAULT_SIZE = 10240


def fnv1a_32(data: bytes, hval: int = FNV1_32_INIT) -> int:
    """Return the 32-bit FNV-1a hash of ``data`` starting from ``hval``."""
    for octet in data:
        hval ^= octet
        hval = (hval * _FNV_32_PRIME) & _MASK32
    return hval


def bucket_index(size: int, key: str) -> int:
    """Return the bucket that ``key`` falls into in a table of ``size`` buckets."""
    return fnv1a_32(key.encode("utf-8")) % size


@dataclass
class _Node:
    key: str
    value: Any


class HashTable:
    """String-keyed table; adding an existing key leaves the first value in place."""

    def __init__(self, size: int = DEFAULT_SIZE) -> None:
        if size < 1:
            raise ValueError("hash table size must be positive")
        self._size = size
        self._entries = 0
        self._table: list[list[_Node]] = [[] for _ in range(size)]

    @property
    def capacity(self) -> int:
        """Number of buckets currently allocated."""
        return self._size

    @staticmethod
    def _check_key(key: object) -> str:
        if not isinstance(key, str):
            raise TypeError("hash table keys must be strings")
        return key

    def _find(self, key: str) -> _Node | None:
        for node in self._table[bucket_index(self._size, key)]:
            if node.key == key:
                return node
        return None

    def _resize(self) -> None:
        target = self._size * 2
        new_size = 2
        while new_size < target:
            new_size <<= 1
        old_table = self._table
        self._size = new_size
        self._table = [[] for _ in range(new_size)]
        for chain in old_table:
            for node in chain:
                self._table[bucket_index(new_size, node.key)].insert(0, node)

    def add(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` unless the key is already present."""
        key = self._check_key(key)
        if self._find(key) is not None:
            return
        if self._entries >= self._size // 4:
            self._resize()
        self._table[bucket_index(self._size, key)].insert(0, _Node(key, value))
        self._entries += 1

    def get(self, key: str) -> Any:
        """Return the value stored under ``key``, or None."""
        node = self._find(self._check_key(key))
        return None if node is None else node.value

    def remove(self, key: str) -> None:
        """Remove ``key`` if present; absent keys are ignored."""
        key = self._check_key(key)
        chain = self._table[bucket_index(self._size, key)]
        for position, node in enumerate(chain):
            if node.key == key:
                del chain[position]
                self._entries -= 1
                return

    def keys(self) -> list[str]:
        """Return all keys in bucket order."""
        return [node.key for chain in self._table for node in chain]

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self._find(key) is not None

    def __len__(self) -> int:
        return self._entries