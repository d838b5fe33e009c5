"""Tests for the cached client layer, cache and known scripts"""

import pytest

from ckb_client.ckb import CellDep, CellOutput, OutPoint, Transaction, fixed_point_from
from ckb_client.client import ClientCache, KnownScriptInfo, KnownScriptRegistry, SearchKey, SearchKeyFilter
from ckb_client.client.types import FeeRateStatistics, script_matches
from ckb_client.enums import DepType, HashType, KnownScript, Order, ScriptSearchMode
from ckb_client.runtime.errors import AmbiguousResultError, UnknownScriptError

from helpers.mocks import MockClient, make_cell, make_script


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


# =============================================================================
# Cache
# =============================================================================

class TestClientCache:

    def test_ttl_expiry(self):
        clock = FakeClock()
        cache = ClientCache(ttl=10, clock=clock)
        cache.set("k", 1)
        assert cache.get("k") == 1
        clock.now = 10
        assert cache.get("k") is None
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    def test_zero_ttl_never_expires(self):
        clock = FakeClock()
        cache = ClientCache(ttl=10, clock=clock)
        cache.set("k", 1, ttl=0)
        clock.now = 1e9
        assert cache.get("k") == 1

    def test_size_bound_evicts_oldest(self):
        cache = ClientCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.stats.evictions == 1

    def test_record_transaction_exposes_outputs(self):
        cache = ClientCache()
        tx = Transaction(outputs=[CellOutput(capacity=1, lock=make_script())], outputs_data=[b"\x01"])
        tx_hash = cache.record_transaction(tx)
        cell = cache.get_cell(OutPoint(tx_hash=tx_hash, index=0))
        assert cell.output_data == b"\x01"

    def test_record_transaction_marks_inputs_spent(self):
        cache = ClientCache()
        cell = make_cell(make_script(), 1)
        tx = Transaction()
        tx.add_input(cell)
        cache.record_transaction(tx)
        assert cache.is_spent(cell.out_point)
        cache.clear()
        assert not cache.is_spent(cell.out_point)

    def test_invalidate_queries(self):
        cache = ClientCache()
        cache.set(("find_cells", 1), "page")
        cache.set(("cells_capacity", 1), 5)
        cache.set(("transaction", b"\x01"), "tx")
        cache.invalidate_queries("find_cells", "cells_capacity")
        assert cache.get(("find_cells", 1)) is None
        assert cache.get(("cells_capacity", 1)) is None
        assert cache.get(("transaction", b"\x01")) == "tx"

    def test_clear(self):
        cache = ClientCache()
        cache.set("k", 1)
        cache.record_cells(make_cell(make_script(), 1))
        assert len(cache) == 2
        cache.clear()
        assert len(cache) == 0


# =============================================================================
# Known scripts
# =============================================================================

class TestKnownScripts:

    def test_default_tables(self):
        registry = KnownScriptRegistry.default()
        assert set(registry.networks) == {"mainnet", "testnet"}
        secp = registry.get(KnownScript.SECP256K1_BLAKE160, "testnet")
        assert secp.hash_type == HashType.TYPE
        assert secp.cell_deps[0].dep_type == DepType.DEP_GROUP

    def test_lookup_by_name(self):
        registry = KnownScriptRegistry.default()
        assert registry.get("OmniLock", "mainnet") == registry.get(KnownScript.OMNI_LOCK, "mainnet")

    def test_missing_entry(self):
        registry = KnownScriptRegistry.default()
        with pytest.raises(UnknownScriptError) as exc_info:
            registry.get(KnownScript.JOY_ID, "testnet")
        assert exc_info.value.details == {"name": "JoyId", "network": "testnet"}
        assert registry.find(KnownScript.JOY_ID, "testnet") is None

    def test_unknown_name_and_network(self):
        registry = KnownScriptRegistry.default()
        with pytest.raises(UnknownScriptError):
            registry.get("NotAScript", "testnet")
        with pytest.raises(UnknownScriptError):
            registry.get(KnownScript.SECP256K1_BLAKE160, "devnet")

    def test_overrides_do_not_touch_defaults(self):
        info = KnownScriptInfo(code_hash=b"\x01" * 32, hash_type=HashType.DATA1)
        registry = KnownScriptRegistry.default().with_overrides("devnet", {KnownScript.JOY_ID: info})
        assert registry.get(KnownScript.JOY_ID, "devnet") is info
        assert KnownScriptRegistry.default().find(KnownScript.JOY_ID, "devnet") is None

    @pytest.mark.asyncio
    async def test_client_resolution(self):
        client = MockClient()
        script = await client.resolve_known_script(KnownScript.SECP256K1_BLAKE160, b"\x01" * 20)
        assert script.args == b"\x01" * 20
        dep = await client.known_script_cell_dep(KnownScript.OMNI_LOCK)
        assert dep.dep_type == DepType.CODE
        assert len(await client.known_script_cell_deps(KnownScript.OMNI_LOCK)) == 2

    @pytest.mark.asyncio
    async def test_client_resolution_other_network(self):
        client = MockClient(network="testnet")
        script = await client.resolve_known_script(KnownScript.XUDT, network="mainnet")
        assert script.hash_type == HashType.DATA1

    @pytest.mark.asyncio
    async def test_address_prefix(self):
        assert MockClient(network="mainnet").address_prefix == "ckb"
        assert MockClient(network="testnet").address_prefix == "ckt"

    @pytest.mark.asyncio
    async def test_add_cell_deps_of_known_scripts(self):
        client = MockClient()
        tx = Transaction()
        await tx.add_cell_deps_of_known_scripts(client, KnownScript.OMNI_LOCK, KnownScript.SECP256K1_BLAKE160)
        # the secp dep group is shared by both
        assert len(tx.cell_deps) == 2


# =============================================================================
# Search keys
# =============================================================================

class TestSearchKey:

    def test_prefix_and_exact(self):
        pattern = make_script(b"\x01")
        actual = make_script(b"\x01\x02")
        assert script_matches(pattern, actual, ScriptSearchMode.PREFIX)
        assert not script_matches(pattern, actual, ScriptSearchMode.EXACT)
        assert not script_matches(pattern, None, ScriptSearchMode.PREFIX)

    def test_free_cells(self):
        lock = make_script(b"\x01")
        key = SearchKey.for_free_cells(lock)
        assert key.matches(make_cell(lock, 100))
        assert not key.matches(make_cell(lock, 100, data=b"\x00"))
        assert not key.matches(make_cell(lock, 100, type_=make_script(code_byte=0x22)))
        assert not key.matches(make_cell(make_script(b"\x01\x02"), 100))

    def test_filter_ranges(self):
        lock = make_script()
        key = SearchKey(script=lock, filter=SearchKeyFilter(output_capacity_range=(10, 20), block_range=(5, 6)))
        assert key.matches(make_cell(lock, 10))
        assert not key.matches(make_cell(lock, 20))
        assert key.matches(make_cell(lock, 15), block_number=5)
        assert not key.matches(make_cell(lock, 15), block_number=6)

    def test_for_type_with_lock_filter(self):
        lock = make_script(b"\x01")
        type_script = make_script(code_byte=0x22)
        key = SearchKey.for_type(type_script, lock=lock)
        assert key.matches(make_cell(lock, 1, type_=type_script))
        assert not key.matches(make_cell(make_script(b"\x02"), 1, type_=type_script))

    def test_hashable(self):
        assert hash(SearchKey.for_free_cells(make_script())) == hash(SearchKey.for_free_cells(make_script()))


# =============================================================================
# Cached queries
# =============================================================================

class TestClientQueries:

    @pytest.mark.asyncio
    async def test_get_cell_resolves_and_caches(self):
        cell = make_cell(make_script(), 100)
        client = MockClient([cell])
        assert await client.get_cell(cell.out_point) == cell
        assert await client.get_cell(cell.out_point) == cell
        assert client.calls["get_transaction"] == 1

    @pytest.mark.asyncio
    async def test_get_cell_missing(self):
        client = MockClient()
        assert await client.get_cell(OutPoint(tx_hash=b"\x09" * 32, index=0)) is None

    @pytest.mark.asyncio
    async def test_find_cells_paged_limit_and_cursor(self):
        lock = make_script()
        client = MockClient([make_cell(lock, i + 1) for i in range(5)])
        key = SearchKey(script=lock)

        first = await client.find_cells_paged(key, limit=2)
        second = await client.find_cells_paged(key, limit=2, after=first.last_cursor)
        assert len(first.cells) == 2
        assert len(second.cells) == 2
        assert not {c.out_point for c in first.cells} & {c.out_point for c in second.cells}

    @pytest.mark.asyncio
    async def test_find_cells_iterates_all_pages(self):
        lock = make_script()
        cells = [make_cell(lock, i + 1) for i in range(7)]
        client = MockClient(cells)
        found = [c async for c in client.find_cells(SearchKey(script=lock), page_size=3)]
        assert {c.out_point for c in found} == {c.out_point for c in cells}

    @pytest.mark.asyncio
    async def test_find_cells_desc(self):
        lock = make_script()
        client = MockClient([make_cell(lock, i + 1) for i in range(3)])
        asc = [c async for c in client.find_cells(SearchKey(script=lock))]
        desc = [c async for c in client.find_cells(SearchKey(script=lock), order=Order.DESC)]
        assert desc == list(reversed(asc))

    @pytest.mark.asyncio
    async def test_find_cells_by_lock_is_exact(self):
        lock = make_script(b"\x01")
        client = MockClient([make_cell(lock, 1), make_cell(make_script(b"\x01\x02"), 1)])
        found = [c async for c in client.find_cells_by_lock(lock)]
        assert [c.output.lock for c in found] == [lock]

    @pytest.mark.asyncio
    async def test_get_cells_capacity(self):
        lock = make_script()
        client = MockClient([make_cell(lock, 3), make_cell(lock, 4)])
        assert await client.get_cells_capacity(SearchKey(script=lock)) == 7
        await client.get_cells_capacity(SearchKey(script=lock))
        assert client.calls["get_cells_capacity"] == 1

    @pytest.mark.asyncio
    async def test_singleton_cell(self):
        type_script = make_script(code_byte=0x22)
        client = MockClient([make_cell(make_script(), 1, type_=type_script)])
        assert (await client.find_singleton_cell_by_type(type_script)).output.type == type_script
        assert await client.find_singleton_cell_by_type(make_script(code_byte=0x33)) is None

    @pytest.mark.asyncio
    async def test_singleton_cell_ambiguous(self):
        type_script = make_script(code_byte=0x22)
        client = MockClient([make_cell(make_script(), 1, type_=type_script) for _ in range(2)])
        with pytest.raises(AmbiguousResultError):
            await client.find_singleton_cell_by_type(type_script)

    @pytest.mark.asyncio
    async def test_send_transaction_records_outputs(self):
        client = MockClient()
        tx = Transaction(outputs=[CellOutput(capacity=fixed_point_from(61), lock=make_script())])
        tx_hash = await client.send_transaction(tx)
        assert tx_hash == tx.hash()
        client.transactions.clear()
        cell = await client.get_cell(OutPoint(tx_hash=tx_hash, index=0))
        assert cell.output == tx.outputs[0]

    @pytest.mark.asyncio
    async def test_fee_rate_floor(self):
        client = MockClient(fee_rate=500)
        assert await client.get_fee_rate() == 1000
        client.fee_rate_statistics = FeeRateStatistics(mean=3000, median=2000)
        assert await client.get_fee_rate() == 2000

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with MockClient() as client:
            assert await client.get_tip() == 100

    @pytest.mark.asyncio
    async def test_sent_transaction_is_copied(self):
        client = MockClient()
        tx = Transaction(outputs=[CellOutput(capacity=fixed_point_from(80), lock=make_script())])
        tx_hash = await client.send_transaction(tx)

        tx.outputs[0] = CellOutput(capacity=1, lock=make_script())
        response = await client.get_transaction(tx_hash)
        assert response.transaction.outputs[0].capacity == fixed_point_from(80)

        response.transaction.outputs.clear()
        again = await client.get_transaction(tx_hash)
        assert len(again.transaction.outputs) == 1
        cell = await client.get_cell(OutPoint(tx_hash=tx_hash, index=0))
        assert cell.output.capacity == fixed_point_from(80)

    @pytest.mark.asyncio
    async def test_sent_inputs_hidden_while_node_lags(self):
        lock = make_script()
        cells = [make_cell(lock, 1), make_cell(lock, 2)]
        client = MockClient(cells)
        tx = Transaction(outputs=[CellOutput(capacity=fixed_point_from(61), lock=make_script(code_byte=0x22))])
        tx.add_input(cells[0])

        await client.send_transaction(tx)
        # indexer still lists the spent cell
        client.add_cell(cells[0])

        key = SearchKey(script=lock)
        page = await client.find_cells_paged(key)
        found = [c async for c in client.find_cells(key, page_size=1)]
        assert [c.out_point for c in page.cells] == [cells[1].out_point]
        assert [c.out_point for c in found] == [cells[1].out_point]

    @pytest.mark.asyncio
    async def test_send_refreshes_cached_pages(self):
        lock = make_script()
        cell = make_cell(lock, 1)
        client = MockClient([cell])
        key = SearchKey(script=lock)
        assert len((await client.find_cells_paged(key)).cells) == 1

        tx = Transaction(outputs=[CellOutput(capacity=fixed_point_from(61), lock=lock)])
        tx.add_input(cell)
        tx_hash = await client.send_transaction(tx)

        page = await client.find_cells_paged(key)
        assert [c.out_point for c in page.cells] == [OutPoint(tx_hash=tx_hash, index=0)]
        assert client.calls["find_cells"] == 2
