"""
CKB clients: node transport, known scripts and cached ledger queries.
"""

from .cache import ClientCache
from .client import Client
from .json_rpc import ClientJsonRpc, ClientPublicMainnet, ClientPublicTestnet
from .known_scripts import KnownScriptInfo, KnownScriptRegistry
from .transformers import JsonRpcTransformers
from .types import (
    FeeRateStatistics,
    FindCellsResponse,
    SearchKey,
    SearchKeyFilter,
    TransactionResponse,
    TransactionStatus,
)

__all__ = [
    "Client",
    "ClientCache",
    "ClientJsonRpc",
    "ClientPublicMainnet",
    "ClientPublicTestnet",
    "KnownScriptInfo",
    "KnownScriptRegistry",
    "JsonRpcTransformers",
    "FeeRateStatistics",
    "FindCellsResponse",
    "SearchKey",
    "SearchKeyFilter",
    "TransactionResponse",
    "TransactionStatus",
]
