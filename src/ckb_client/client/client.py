"""
Abstract CKB client.

Concrete clients implement the ``*_no_cache`` primitives against a transport.
The base class layers the query cache, known-script lookups and the cell
queries the balancer and signers rely on.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional, Union

from ..ckb.cell import Cell, CellDep, OutPoint
from ..ckb.fees import DEFAULT_MIN_FEE_RATE
from ..ckb.script import Script
from ..ckb.transaction import Transaction
from ..enums import KnownScript, Order, OutputsValidator
from ..runtime.codec import BytesLike, bytes_from, hex_from
from ..runtime.errors import AmbiguousResultError
from .cache import ClientCache
from .known_scripts import ADDRESS_PREFIXES, KnownScriptInfo, KnownScriptRegistry
from .types import (
    FeeRateStatistics,
    FindCellsResponse,
    SearchKey,
    TransactionResponse,
    TransactionStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class Client(ABC):
    """
    Base class of every CKB client.

    Args:
        network: "mainnet" or "testnet"; selects known scripts and address prefix
        known_scripts: Registry override; the default tables are used otherwise
        cache: Query cache; a fresh ClientCache is created otherwise
    """

    def __init__(self, network: str = "testnet",
                 known_scripts: Optional[KnownScriptRegistry] = None,
                 cache: Optional[ClientCache] = None):
        self.network = network
        self.known_scripts = known_scripts or KnownScriptRegistry.default()
        self.cache = cache if cache is not None else ClientCache()

    @property
    def address_prefix(self) -> str:
        return ADDRESS_PREFIXES.get(self.network, "ckt")

    async def close(self) -> None:
        """Release transport resources. No-op unless the transport holds any."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # Known scripts

    async def get_known_script(self, name: Union[KnownScript, str],
                               network: Optional[str] = None) -> KnownScriptInfo:
        return self.known_scripts.get(name, network or self.network)

    async def resolve_known_script(self, name: Union[KnownScript, str], args: BytesLike = b"",
                                   network: Optional[str] = None) -> Script:
        """
        Build a script from a well-known template.

        Raises:
            UnknownScriptError: No template for ``name`` on the network
        """
        return (await self.get_known_script(name, network)).script(args)

    async def known_script_cell_deps(self, name: Union[KnownScript, str],
                                     network: Optional[str] = None) -> List[CellDep]:
        return list((await self.get_known_script(name, network)).cell_deps)

    async def known_script_cell_dep(self, name: Union[KnownScript, str],
                                    network: Optional[str] = None) -> CellDep:
        """The primary (code) dep of a known script."""
        deps = await self.known_script_cell_deps(name, network)
        if not deps:
            raise ValueError(f"Known script {name} has no cell deps")
        return deps[0]

    # Transport primitives

    @abstractmethod
    async def send_transaction_no_cache(
        self, tx: Transaction,
        validator: OutputsValidator = OutputsValidator.WELL_KNOWN_SCRIPTS_ONLY,
    ) -> bytes:
        pass

    @abstractmethod
    async def get_transaction_no_cache(self, tx_hash: BytesLike) -> Optional[TransactionResponse]:
        pass

    @abstractmethod
    async def find_cells_paged_no_cache(self, key: SearchKey, order: Order = Order.ASC,
                                        limit: int = DEFAULT_PAGE_SIZE,
                                        after: Optional[str] = None) -> FindCellsResponse:
        pass

    @abstractmethod
    async def get_cells_capacity_no_cache(self, key: SearchKey) -> int:
        pass

    @abstractmethod
    async def get_tip(self) -> int:
        """Number of the tip block."""

    @abstractmethod
    async def get_fee_rate_statistics(self, block_range: Optional[int] = None) -> Optional[FeeRateStatistics]:
        pass

    # Cached queries

    async def send_transaction(
        self, tx: Transaction,
        validator: OutputsValidator = OutputsValidator.WELL_KNOWN_SCRIPTS_ONLY,
    ) -> bytes:
        """
        Submit a transaction.

        The sent transaction is recorded in the cache, so its outputs resolve
        through get_cell and its inputs drop out of cell queries before the
        node indexes it.

        Returns:
            Transaction hash

        Raises:
            RpcError: The node rejected the transaction
        """
        tx_hash = await self.send_transaction_no_cache(tx, validator)
        self.cache.record_transaction(tx)
        self.cache.invalidate_queries("find_cells", "cells_capacity")
        logger.info(f"Sent transaction {hex_from(tx_hash)}")
        return tx_hash

    async def get_transaction(self, tx_hash: BytesLike,
                              use_cache: bool = True) -> Optional[TransactionResponse]:
        key = ("transaction", bytes_from(tx_hash))
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached.model_copy(deep=True)

        response = await self.get_transaction_no_cache(tx_hash)
        if response is not None:
            # committed transactions never change
            ttl = 0 if response.status == TransactionStatus.COMMITTED else None
            self.cache.set(key, response.model_copy(deep=True), ttl)
        return response

    async def get_cell(self, out_point: OutPoint) -> Optional[Cell]:
        """Resolve a cell, live or spent, by its out point."""
        cell = self.cache.get_cell(out_point)
        if cell is not None:
            return cell

        response = await self.get_transaction(out_point.tx_hash)
        if response is None or out_point.index >= len(response.transaction.outputs):
            return None
        tx = response.transaction
        cell = Cell(
            out_point=out_point,
            output=tx.outputs[out_point.index],
            output_data=tx.outputs_data[out_point.index],
        )
        self.cache.record_cells(cell)
        return cell

    async def find_cells_paged(self, key: SearchKey, order: Order = Order.ASC,
                               limit: int = DEFAULT_PAGE_SIZE, after: Optional[str] = None,
                               use_cache: bool = True) -> FindCellsResponse:
        """
        Fetch one page of live cells matching ``key``.

        Never returns more than ``limit`` cells. Cells spent by transactions
        this client sent are left out, even while the node still lists them.
        """
        page = await self._find_cells_page(key, order, limit, after, use_cache)
        return FindCellsResponse(
            cells=[c for c in page.cells if not self.cache.is_spent(c.out_point)],
            last_cursor=page.last_cursor,
        )

    async def _find_cells_page(self, key: SearchKey, order: Order, limit: int,
                               after: Optional[str], use_cache: bool = True) -> FindCellsResponse:
        cache_key = ("find_cells", key, Order(order), limit, after)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        response = await self.find_cells_paged_no_cache(key, order, limit, after)
        if len(response.cells) > limit:
            response = FindCellsResponse(cells=response.cells[:limit], last_cursor=response.last_cursor)
        if key.with_data:
            self.cache.record_cells(*response.cells)
        self.cache.set(cache_key, response)
        return response

    async def find_cells(self, key: SearchKey, order: Order = Order.ASC,
                         page_size: int = DEFAULT_PAGE_SIZE) -> AsyncIterator[Cell]:
        """Iterate over every live cell matching ``key``, page by page."""
        after: Optional[str] = None
        while True:
            # paging runs on unfiltered pages so spent cells never end it early
            page = await self._find_cells_page(key, order, page_size, after)
            for cell in page.cells:
                if not self.cache.is_spent(cell.out_point):
                    yield cell
            if len(page.cells) < page_size or not page.last_cursor:
                return
            after = page.last_cursor

    async def find_cells_by_lock(self, lock: Script, type_: Optional[Script] = None,
                                 with_data: bool = True,
                                 order: Order = Order.ASC) -> AsyncIterator[Cell]:
        """Cells locked exactly by ``lock``; with ``type_`` also typed exactly by it."""
        key = SearchKey(script=lock, script_search_mode="exact", with_data=with_data)
        async for cell in self.find_cells(key, order):
            if cell.output.lock != lock:
                continue
            if type_ is not None and cell.output.type != type_:
                continue
            yield cell

    async def get_cells_capacity(self, key: SearchKey) -> int:
        cache_key = ("cells_capacity", key)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached
        capacity = await self.get_cells_capacity_no_cache(key)
        self.cache.set(cache_key, capacity)
        return capacity

    async def find_singleton_cell_by_type(self, type_script: Script,
                                          with_data: bool = True) -> Optional[Cell]:
        """
        The unique live cell typed by ``type_script``.

        Returns:
            The cell, or None when no live cell has that type

        Raises:
            AmbiguousResultError: More than one live cell has that type
        """
        page = await self.find_cells_paged(
            SearchKey.for_type(type_script, with_data=with_data), limit=2, use_cache=False,
        )
        cells = [c for c in page.cells if c.output.type == type_script]
        if len(cells) > 1:
            raise AmbiguousResultError(
                f"Multiple live cells with type {type_script!r}",
                {"out_points": [repr(c.out_point) for c in cells]},
            )
        return cells[0] if cells else None

    async def get_fee_rate(self, block_range: Optional[int] = None) -> int:
        """Median recent fee rate, never below DEFAULT_MIN_FEE_RATE."""
        stats = await self.get_fee_rate_statistics(block_range)
        median = stats.median if stats is not None else 0
        return max(median, DEFAULT_MIN_FEE_RATE)


__all__ = ["Client", "DEFAULT_PAGE_SIZE"]
