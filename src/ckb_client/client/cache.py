"""
In-memory query cache for clients.

Cells are immutable once created, so resolved cells are kept until evicted by
size. Query results (transactions, cell pages) expire after a TTL because a
pending transaction may later commit and live cells may be spent.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Optional

from ..ckb.cell import Cell, OutPoint
from ..ckb.transaction import Transaction
from .types import TransactionResponse, TransactionStatus

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and when it stops being valid."""
    value: Any
    expires_at: Optional[float] = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "evictions": self.evictions}


@dataclass
class ClientCache:
    """
    TTL and size bounded cache.

    Each client owns its own cache. Entries are evicted oldest-first when the
    cache grows past ``max_entries``.
    """
    ttl: float = 30.0
    max_entries: int = 1024
    clock: Callable[[], float] = time.monotonic
    stats: CacheStats = field(default_factory=CacheStats)
    _entries: "OrderedDict[Hashable, CacheEntry]" = field(default_factory=OrderedDict, init=False, repr=False)
    _cells: "OrderedDict[OutPoint, Cell]" = field(default_factory=OrderedDict, init=False, repr=False)
    _spent: "OrderedDict[OutPoint, None]" = field(default_factory=OrderedDict, init=False, repr=False)

    def get(self, key: Hashable) -> Optional[Any]:
        """Return a live cached value, or None."""
        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return None
        if entry.expired(self.clock()):
            del self._entries[key]
            self.stats.misses += 1
            return None
        self._entries.move_to_end(key)
        self.stats.hits += 1
        logger.debug(f"Cache hit for {key!r}")
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value; ``ttl`` overrides the default, 0 disables expiry."""
        ttl = self.ttl if ttl is None else ttl
        expires_at = self.clock() + ttl if ttl > 0 else None
        self._entries[key] = CacheEntry(value, expires_at)
        self._entries.move_to_end(key)
        self._evict(self._entries)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def invalidate_queries(self, *kinds: str) -> None:
        """Drop every entry whose key is a tuple starting with one of ``kinds``."""
        for key in [k for k in self._entries if isinstance(k, tuple) and k and k[0] in kinds]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()
        self._cells.clear()
        self._spent.clear()

    def __len__(self) -> int:
        return len(self._entries) + len(self._cells)

    def get_cell(self, out_point: OutPoint) -> Optional[Cell]:
        cell = self._cells.get(out_point)
        if cell is None:
            self.stats.misses += 1
            return None
        self.stats.hits += 1
        return cell

    def record_cells(self, *cells: Cell) -> None:
        for cell in cells:
            self._cells[cell.out_point] = cell
            self._cells.move_to_end(cell.out_point)
        self._evict(self._cells)

    def is_spent(self, out_point: OutPoint) -> bool:
        """True if a transaction recorded here consumed ``out_point``."""
        return out_point in self._spent

    def record_transaction(self, tx: Transaction,
                           status: TransactionStatus = TransactionStatus.PENDING) -> bytes:
        """
        Remember a transaction, the cells it spends and the cells it creates.

        A copy of ``tx`` is stored, so later edits by the caller do not leak
        into cached responses.

        Returns:
            The transaction hash
        """
        tx = tx.clone()
        tx_hash = tx.hash()
        self.set(("transaction", tx_hash), TransactionResponse(transaction=tx, status=status))
        for cell_input in tx.inputs:
            self._spent[cell_input.previous_output] = None
            self._spent.move_to_end(cell_input.previous_output)
        self._evict(self._spent)
        self.record_cells(*(
            Cell(out_point=OutPoint(tx_hash=tx_hash, index=i), output=output, output_data=data)
            for i, (output, data) in enumerate(zip(tx.outputs, tx.outputs_data))
        ))
        return tx_hash

    def _evict(self, store: "OrderedDict[Any, Any]") -> None:
        while len(store) > self.max_entries:
            store.popitem(last=False)
            self.stats.evictions += 1
