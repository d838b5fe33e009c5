"""
Conversions between domain models and the node's JSON-RPC shapes.

The node encodes every number as compact hex and every byte string as
0x-prefixed hex, with snake_case keys.
"""

from typing import Any, Dict, List, Optional

from ..ckb.cell import Cell, CellDep, CellInput, CellOutput, OutPoint
from ..ckb.script import Script
from ..ckb.transaction import Transaction
from ..enums import DepType, HashType, ScriptSearchMode, ScriptType
from ..runtime.codec import bytes_from, hex_from, num_from, num_to_hex
from .types import (
    FeeRateStatistics,
    FindCellsResponse,
    Range,
    SearchKey,
    SearchKeyFilter,
    TransactionResponse,
    TransactionStatus,
)


class JsonRpcTransformers:
    """Static ``*_from`` (model to JSON) and ``*_to`` (JSON to model) converters."""

    # Script

    @staticmethod
    def script_from(script: Script) -> Dict[str, Any]:
        return {
            "code_hash": hex_from(script.code_hash),
            "hash_type": script.hash_type.to_json(),
            "args": hex_from(script.args),
        }

    @staticmethod
    def script_to(data: Dict[str, Any]) -> Script:
        return Script(
            code_hash=data["code_hash"],
            hash_type=HashType.parse(data["hash_type"]),
            args=data["args"],
        )

    # Cells

    @staticmethod
    def out_point_from(out_point: OutPoint) -> Dict[str, Any]:
        return {"tx_hash": hex_from(out_point.tx_hash), "index": num_to_hex(out_point.index)}

    @staticmethod
    def out_point_to(data: Dict[str, Any]) -> OutPoint:
        return OutPoint(tx_hash=data["tx_hash"], index=num_from(data["index"]))

    @staticmethod
    def cell_input_from(cell_input: CellInput) -> Dict[str, Any]:
        return {
            "previous_output": JsonRpcTransformers.out_point_from(cell_input.previous_output),
            "since": num_to_hex(cell_input.since),
        }

    @staticmethod
    def cell_input_to(data: Dict[str, Any]) -> CellInput:
        return CellInput(
            previous_output=JsonRpcTransformers.out_point_to(data["previous_output"]),
            since=num_from(data.get("since", 0)),
        )

    @staticmethod
    def cell_output_from(output: CellOutput) -> Dict[str, Any]:
        return {
            "capacity": num_to_hex(output.capacity),
            "lock": JsonRpcTransformers.script_from(output.lock),
            "type": JsonRpcTransformers.script_from(output.type) if output.type else None,
        }

    @staticmethod
    def cell_output_to(data: Dict[str, Any]) -> CellOutput:
        type_ = data.get("type")
        return CellOutput(
            capacity=num_from(data["capacity"]),
            lock=JsonRpcTransformers.script_to(data["lock"]),
            type=JsonRpcTransformers.script_to(type_) if type_ else None,
        )

    @staticmethod
    def cell_dep_from(dep: CellDep) -> Dict[str, Any]:
        return {
            "out_point": JsonRpcTransformers.out_point_from(dep.out_point),
            "dep_type": dep.dep_type.to_json(),
        }

    @staticmethod
    def cell_dep_to(data: Dict[str, Any]) -> CellDep:
        return CellDep(
            out_point=JsonRpcTransformers.out_point_to(data["out_point"]),
            dep_type=DepType.parse(data["dep_type"]),
        )

    # Transaction

    @staticmethod
    def transaction_from(tx: Transaction) -> Dict[str, Any]:
        t = JsonRpcTransformers
        return {
            "version": num_to_hex(tx.version),
            "cell_deps": [t.cell_dep_from(d) for d in tx.cell_deps],
            "header_deps": [hex_from(h) for h in tx.header_deps],
            "inputs": [t.cell_input_from(i) for i in tx.inputs],
            "outputs": [t.cell_output_from(o) for o in tx.outputs],
            "outputs_data": [hex_from(d) for d in tx.outputs_data],
            "witnesses": [hex_from(w) for w in tx.witnesses],
        }

    @staticmethod
    def transaction_to(data: Dict[str, Any]) -> Transaction:
        t = JsonRpcTransformers
        return Transaction(
            version=num_from(data.get("version", 0)),
            cell_deps=[t.cell_dep_to(d) for d in data.get("cell_deps", [])],
            header_deps=[bytes_from(h) for h in data.get("header_deps", [])],
            inputs=[t.cell_input_to(i) for i in data.get("inputs", [])],
            outputs=[t.cell_output_to(o) for o in data.get("outputs", [])],
            outputs_data=[bytes_from(d) for d in data.get("outputs_data", [])],
            witnesses=[bytes_from(w) for w in data.get("witnesses", [])],
        )

    @staticmethod
    def transaction_response_to(data: Optional[Dict[str, Any]]) -> Optional[TransactionResponse]:
        if not data or not data.get("transaction"):
            return None
        status = data.get("tx_status") or {}
        block_hash = status.get("block_hash")
        block_number = status.get("block_number")
        return TransactionResponse(
            transaction=JsonRpcTransformers.transaction_to(data["transaction"]),
            status=TransactionStatus(status.get("status", "unknown")),
            block_hash=bytes_from(block_hash) if block_hash else None,
            block_number=num_from(block_number) if block_number is not None else None,
            reason=status.get("reason"),
        )

    # Indexer

    @staticmethod
    def range_from(rng: Optional[Range]) -> Optional[List[str]]:
        return None if rng is None else [num_to_hex(rng[0]), num_to_hex(rng[1])]

    @staticmethod
    def search_key_filter_from(f: Optional[SearchKeyFilter]) -> Optional[Dict[str, Any]]:
        if f is None:
            return None
        t = JsonRpcTransformers
        return {
            "script": t.script_from(f.script) if f.script else None,
            "script_len_range": t.range_from(f.script_len_range),
            "output_data_len_range": t.range_from(f.output_data_len_range),
            "output_capacity_range": t.range_from(f.output_capacity_range),
            "block_range": t.range_from(f.block_range),
        }

    @staticmethod
    def search_key_from(key: SearchKey) -> Dict[str, Any]:
        return {
            "script": JsonRpcTransformers.script_from(key.script),
            "script_type": ScriptType(key.script_type).value,
            "script_search_mode": ScriptSearchMode(key.script_search_mode).value,
            "filter": JsonRpcTransformers.search_key_filter_from(key.filter),
            "with_data": key.with_data,
        }

    @staticmethod
    def indexer_cell_to(data: Dict[str, Any]) -> Cell:
        return Cell(
            out_point=JsonRpcTransformers.out_point_to(data["out_point"]),
            output=JsonRpcTransformers.cell_output_to(data["output"]),
            output_data=data.get("output_data") or b"",
        )

    @staticmethod
    def fee_rate_statistics_to(data: Optional[Dict[str, Any]]) -> Optional[FeeRateStatistics]:
        if not data:
            return None
        return FeeRateStatistics(mean=num_from(data["mean"]), median=num_from(data["median"]))

    @staticmethod
    def find_cells_response_to(data: Dict[str, Any]) -> FindCellsResponse:
        return FindCellsResponse(
            cells=[JsonRpcTransformers.indexer_cell_to(c) for c in data.get("objects", [])],
            last_cursor=data.get("last_cursor", ""),
        )
