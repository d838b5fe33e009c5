"""Unit tests for ClientJsonRpc with a fake aiohttp session"""

import asyncio
import itertools
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from ckb_client.ckb import CellOutput, OutPoint, Transaction
from ckb_client.client import ClientJsonRpc, ClientPublicMainnet, ClientPublicTestnet, JsonRpcTransformers, SearchKey
from ckb_client.config import MAINNET_PUBLIC_URL, TESTNET_PUBLIC_URL, ClientConfig
from ckb_client.enums import OutputsValidator
from ckb_client.runtime.codec import hex_from
from ckb_client.runtime.errors import (
    ErrorHandler,
    IdMismatchError,
    NetworkError,
    RpcError,
    RpcTimeoutError,
)

from helpers.mocks import FakeResponse, FakeSession, make_script, rpc_result

URL = "http://127.0.0.1:8114"


def make_client(responder, **kwargs) -> ClientJsonRpc:
    return ClientJsonRpc(URL, session=FakeSession(responder), **kwargs)


def sample_transaction() -> Transaction:
    return Transaction(outputs=[CellOutput(capacity=6_100_000_000, lock=make_script(b"\x01"))])


class TestPayload:

    def test_payload_shape(self):
        client = make_client(rpc_result(None))
        payload = client.build_payload("get_tip_block_number", [])
        assert payload == {"id": 1, "jsonrpc": "2.0", "method": "get_tip_block_number", "params": []}
        assert client.build_payload("x", [])["id"] == 2

    @pytest.mark.asyncio
    async def test_call_returns_result(self):
        client = make_client(rpc_result("0x64"))
        assert await client.get_tip() == 100
        request = client._session.requests[0]
        assert request["method"] == "get_tip_block_number"
        assert request["jsonrpc"] == "2.0"


class TestErrors:

    def test_error_text_and_dict(self):
        error = NetworkError("HTTP request failed", {"method": "get_tip"}, ValueError("boom"))
        assert str(error) == "NETWORK_ERROR: HTTP request failed (method='get_tip'); caused by ValueError: boom"
        assert error.to_dict() == {
            "code": 400,
            "name": "NETWORK_ERROR",
            "message": "HTTP request failed",
            "details": {"method": "get_tip"},
            "cause": "ValueError('boom')",
        }

    @pytest.mark.asyncio
    async def test_id_mismatch(self):
        """Reply with id 7 to request id 3: rejected and never cached"""
        client = make_client(lambda payload: FakeResponse(
            body={"jsonrpc": "2.0", "id": 7, "result": None}
        ))
        client._ids = itertools.count(3)

        with pytest.raises(IdMismatchError) as exc_info:
            await client.get_transaction(b"\x01" * 32)

        assert client._session.requests[0]["id"] == 3
        assert exc_info.value.details["expected"] == 3
        assert exc_info.value.details["got"] == 7
        assert len(client.cache) == 0
        assert ErrorHandler.is_retryable(exc_info.value)

    @pytest.mark.asyncio
    async def test_rpc_error(self):
        client = make_client(lambda payload: FakeResponse(body={
            "jsonrpc": "2.0", "id": payload["id"],
            "error": {"code": -301, "message": "TransactionFailedToResolve", "data": "Unknown(OutPoint)"},
        }))
        with pytest.raises(RpcError) as exc_info:
            await client.send_transaction(sample_transaction())
        assert exc_info.value.rpc_code == -301
        assert exc_info.value.rpc_message == "TransactionFailedToResolve"
        assert exc_info.value.data == "Unknown(OutPoint)"
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_http_status(self):
        client = make_client(lambda payload: FakeResponse(status=502, reason="Bad Gateway"))
        with pytest.raises(NetworkError) as exc_info:
            await client.get_tip()
        assert exc_info.value.details["status"] == 502

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def responder(payload):
            raise aiohttp.ClientConnectionError("connection refused")

        client = make_client(responder)
        with pytest.raises(NetworkError):
            await client.get_tip()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = make_client(lambda payload: FakeResponse(error=json.JSONDecodeError("bad", "", 0)))
        with pytest.raises(NetworkError):
            await client.get_tip()

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        client = make_client(lambda payload: FakeResponse(body=[1, 2]))
        with pytest.raises(NetworkError):
            await client.get_tip()

    @pytest.mark.asyncio
    async def test_timeout_cancels_only_that_call(self):
        class SlowResponse(FakeResponse):
            async def __aenter__(self):
                await asyncio.sleep(10)
                return self

        client = ClientJsonRpc(ClientConfig(url=URL, timeout=0.05),
                               session=FakeSession(lambda payload: SlowResponse()))
        with pytest.raises(RpcTimeoutError):
            await client.get_tip()

        client._session.responder = rpc_result("0x1")
        assert await client.get_tip() == 1


class TestNodeMethods:

    @pytest.mark.asyncio
    async def test_send_transaction(self):
        tx = sample_transaction()
        client = make_client(rpc_result(hex_from(tx.hash())))

        tx_hash = await client.send_transaction(tx, OutputsValidator.PASSTHROUGH)

        assert tx_hash == tx.hash()
        params = client._session.requests[0]["params"]
        assert params[0] == JsonRpcTransformers.transaction_from(tx)
        assert params[1] == "passthrough"
        # outputs are resolvable from the cache right away
        cell = await client.get_cell(OutPoint(tx_hash=tx_hash, index=0))
        assert cell.output == tx.outputs[0]
        assert len(client._session.requests) == 1

    @pytest.mark.asyncio
    async def test_get_transaction_committed_is_cached(self):
        tx = sample_transaction()
        client = make_client(rpc_result({
            "transaction": JsonRpcTransformers.transaction_from(tx),
            "tx_status": {"status": "committed", "block_hash": "0x" + "ab" * 32, "block_number": "0xa"},
        }))
        response = await client.get_transaction(tx.hash())
        assert response.transaction == tx
        assert response.block_number == 10
        await client.get_transaction(tx.hash())
        assert len(client._session.requests) == 1

    @pytest.mark.asyncio
    async def test_get_transaction_unknown(self):
        client = make_client(rpc_result(None))
        assert await client.get_transaction(b"\x01" * 32) is None

    @pytest.mark.asyncio
    async def test_get_cells(self):
        lock = make_script(b"\x01")
        cell_json = {
            "out_point": {"tx_hash": "0x" + "11" * 32, "index": "0x0"},
            "output": {"capacity": "0x174876e800", "lock": JsonRpcTransformers.script_from(lock), "type": None},
            "output_data": "0x",
        }
        client = make_client(rpc_result({"objects": [cell_json], "last_cursor": "0xcafe"}))

        page = await client.find_cells_paged(SearchKey.for_free_cells(lock), limit=5, after="0xbeef")

        assert page.last_cursor == "0xcafe"
        assert page.cells[0].output.capacity == 100_000_000_000
        params = client._session.requests[0]["params"]
        assert params[0]["script_search_mode"] == "exact"
        assert params[0]["filter"]["script_len_range"] == ["0x0", "0x1"]
        assert params[1:] == ["asc", "0x5", "0xbeef"]

    @pytest.mark.asyncio
    async def test_get_cells_capacity(self):
        client = make_client(rpc_result({"capacity": "0x10", "block_hash": "0x", "block_number": "0x1"}))
        assert await client.get_cells_capacity(SearchKey(script=make_script())) == 16

    @pytest.mark.asyncio
    async def test_fee_rate(self):
        client = make_client(rpc_result({"mean": "0xbb8", "median": "0x7d0"}))
        assert await client.get_fee_rate() == 2000

    @pytest.mark.asyncio
    async def test_close_keeps_external_session(self):
        client = make_client(rpc_result(None))
        session = client._session
        await client.close()
        assert not session.closed

    @pytest.mark.asyncio
    async def test_lazy_session_is_owned_and_closed(self):
        session = MagicMock(closed=False)
        session.close = AsyncMock()
        with patch("aiohttp.ClientSession", return_value=session) as factory:
            client = ClientJsonRpc(URL)
            factory.assert_not_called()
            assert client._get_session() is session
            assert client._get_session() is session
            await client.close()

        factory.assert_called_once()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fee_rate_statistics_params(self):
        client = ClientJsonRpc(URL)
        with patch.object(client, "call", AsyncMock(return_value={"mean": "0x3e8", "median": "0x3e8"})) as call:
            stats = await client.get_fee_rate_statistics(21)
        call.assert_awaited_once_with("get_fee_rate_statistics", ["0x15"])
        assert stats.median == 1000


class TestConfig:

    def test_public_clients(self):
        assert ClientPublicMainnet().url == MAINNET_PUBLIC_URL
        assert ClientPublicMainnet().address_prefix == "ckb"
        testnet = ClientPublicTestnet(timeout=5)
        assert testnet.url == TESTNET_PUBLIC_URL
        assert testnet.timeout == 5
        assert testnet.network == "testnet"

    def test_from_env(self):
        config = ClientConfig.from_env({
            "CKB_NETWORK": "mainnet",
            "CKB_RPC_URL": URL,
            "CKB_RPC_TIMEOUT": "12",
            "CKB_CACHE_TTL": "0",
        })
        assert config.network == "mainnet"
        assert config.url == URL
        assert config.timeout == 12
        assert config.cache_ttl == 0

    def test_invalid_network(self):
        with pytest.raises(ValueError):
            ClientConfig(url=URL, network="devnet")
