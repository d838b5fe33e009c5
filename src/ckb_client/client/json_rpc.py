"""
JSON-RPC client for CKB nodes.

Every request carries a fresh id from a per-client counter. The response id
must match, otherwise the response is rejected and nothing is cached.
"""

from __future__ import annotations
import asyncio
import itertools
import json
import logging
from typing import Any, Dict, List, Optional, Union

import aiohttp

from ..ckb.transaction import Transaction
from ..config import ClientConfig
from ..enums import Order, OutputsValidator
from ..runtime.codec import BytesLike, bytes_from, hex_from, num_from, num_to_hex
from ..runtime.errors import IdMismatchError, NetworkError, RpcTimeoutError, error_from_response
from .cache import ClientCache
from .client import DEFAULT_PAGE_SIZE, Client
from .known_scripts import KnownScriptRegistry
from .transformers import JsonRpcTransformers
from .types import FeeRateStatistics, FindCellsResponse, SearchKey, TransactionResponse

logger = logging.getLogger(__name__)


class ClientJsonRpc(Client):
    """
    Client talking to a CKB node over JSON-RPC 2.0 / HTTP.

    Example:
        ```python
        async with ClientJsonRpc("http://127.0.0.1:8114", network="testnet") as client:
            tip = await client.get_tip()
        ```
    """

    def __init__(self, config: Union[str, ClientConfig], network: Optional[str] = None,
                 known_scripts: Optional[KnownScriptRegistry] = None,
                 cache: Optional[ClientCache] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the client.

        Args:
            config: Node URL or a ClientConfig
            network: Network of the node when ``config`` is a URL (default "testnet")
            known_scripts: Known-script registry override
            cache: Query cache override
            session: Externally owned aiohttp session; one is created lazily otherwise
        """
        if isinstance(config, str):
            config = ClientConfig(url=config, network=network or "testnet")
        self.config = config

        super().__init__(
            network=config.network,
            known_scripts=known_scripts,
            cache=cache if cache is not None else ClientCache(
                ttl=config.cache_ttl, max_entries=config.cache_max_entries
            ),
        )

        self.logger = logger
        if config.debug:
            self.logger.setLevel(logging.DEBUG)

        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def timeout(self) -> float:
        return self.config.timeout

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"content-type": "application/json", "user-agent": self.config.user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if owned by this client."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # Low-level RPC

    def build_payload(self, method: str, params: List[Any]) -> Dict[str, Any]:
        return {
            "id": next(self._ids),
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
        }

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC call.

        Raises:
            RpcTimeoutError: No response within the configured timeout
            IdMismatchError: Response id differs from the request id
            RpcError: The node returned an error member
            NetworkError: HTTP or connection failure
        """
        payload = self.build_payload(method, params or [])
        try:
            return await asyncio.wait_for(self._send(payload), self.timeout)
        except asyncio.TimeoutError:
            raise RpcTimeoutError(method, self.timeout) from None

    async def _send(self, payload: Dict[str, Any]) -> Any:
        method = payload["method"]
        self.logger.debug(f"RPC request {payload['id']} {method}")

        try:
            async with self._get_session().post(self.url, json=payload) as response:
                if response.status != 200:
                    raise NetworkError(
                        f"HTTP {response.status}: {response.reason}",
                        {"method": method, "status": response.status},
                    )
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NetworkError(f"HTTP request failed: {e}", {"method": method}, e) from e
        except json.JSONDecodeError as e:
            raise NetworkError(f"Invalid JSON response: {e}", {"method": method}, e) from e

        if not isinstance(data, dict):
            raise NetworkError("Malformed JSON-RPC response", {"method": method})
        if data.get("id") != payload["id"]:
            raise IdMismatchError(payload["id"], data.get("id"))

        error = error_from_response(data, method)
        if error is not None:
            self.logger.warning(f"RPC {method} failed: {error.rpc_code} {error.rpc_message}")
            raise error

        self.logger.debug(f"RPC response {payload['id']} {method}")
        return data.get("result")

    # Node methods

    async def send_transaction_no_cache(
        self, tx: Transaction,
        validator: OutputsValidator = OutputsValidator.WELL_KNOWN_SCRIPTS_ONLY,
    ) -> bytes:
        result = await self.call(
            "send_transaction",
            [JsonRpcTransformers.transaction_from(tx), OutputsValidator(validator).value],
        )
        return bytes_from(result)

    async def get_transaction_no_cache(self, tx_hash: BytesLike) -> Optional[TransactionResponse]:
        result = await self.call("get_transaction", [hex_from(tx_hash)])
        return JsonRpcTransformers.transaction_response_to(result)

    async def find_cells_paged_no_cache(self, key: SearchKey, order: Order = Order.ASC,
                                        limit: int = DEFAULT_PAGE_SIZE,
                                        after: Optional[str] = None) -> FindCellsResponse:
        params: List[Any] = [
            JsonRpcTransformers.search_key_from(key),
            Order(order).value,
            num_to_hex(limit),
        ]
        if after is not None:
            params.append(after)
        result = await self.call("get_cells", params)
        return JsonRpcTransformers.find_cells_response_to(result or {})

    async def get_cells_capacity_no_cache(self, key: SearchKey) -> int:
        result = await self.call("get_cells_capacity", [JsonRpcTransformers.search_key_from(key)])
        if not result:
            return 0
        return num_from(result["capacity"])

    async def get_tip(self) -> int:
        return num_from(await self.call("get_tip_block_number"))

    async def get_fee_rate_statistics(self, block_range: Optional[int] = None) -> Optional[FeeRateStatistics]:
        params = [num_to_hex(block_range)] if block_range is not None else []
        result = await self.call("get_fee_rate_statistics", params)
        return JsonRpcTransformers.fee_rate_statistics_to(result)


class ClientPublicMainnet(ClientJsonRpc):
    """Client preconfigured for the public mainnet node."""

    def __init__(self, url: Optional[str] = None, timeout: float = 30.0, **kwargs):
        config = ClientConfig.for_network("mainnet", timeout=timeout)
        if url:
            config.url = url
        super().__init__(config, **kwargs)


class ClientPublicTestnet(ClientJsonRpc):
    """Client preconfigured for the public testnet node."""

    def __init__(self, url: Optional[str] = None, timeout: float = 30.0, **kwargs):
        config = ClientConfig.for_network("testnet", timeout=timeout)
        if url:
            config.url = url
        super().__init__(config, **kwargs)
