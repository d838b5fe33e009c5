"""
Client query and response types.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..ckb.cell import Cell
from ..ckb.script import Script
from ..ckb.transaction import Transaction
from ..enums import ScriptSearchMode, ScriptType
from ..runtime.codec import num_from

# [start, end): start inclusive, end exclusive, as the node's indexer defines them
Range = Tuple[int, int]


def _coerce_range(v: Any) -> Optional[Range]:
    if v is None:
        return None
    start, end = v
    return num_from(start), num_from(end)


def _in_range(value: int, rng: Optional[Range]) -> bool:
    return rng is None or rng[0] <= value < rng[1]


def script_matches(pattern: Script, actual: Optional[Script], mode: ScriptSearchMode) -> bool:
    """Exact: all fields equal. Prefix: same code, ``pattern.args`` prefixes the args."""
    if actual is None:
        return False
    if mode == ScriptSearchMode.EXACT:
        return pattern == actual
    return (pattern.code_hash == actual.code_hash
            and pattern.hash_type == actual.hash_type
            and actual.args.startswith(pattern.args))


class SearchKeyFilter(BaseModel):
    """Secondary filter applied on top of the primary script match."""

    model_config = ConfigDict(frozen=True)

    script: Optional[Script] = None
    script_len_range: Optional[Range] = None
    output_data_len_range: Optional[Range] = None
    output_capacity_range: Optional[Range] = None
    block_range: Optional[Range] = None

    @field_validator("script_len_range", "output_data_len_range", "output_capacity_range",
                     "block_range", mode="before")
    @classmethod
    def _coerce_ranges(cls, v: Any) -> Optional[Range]:
        return _coerce_range(v)


class SearchKey(BaseModel):
    """
    Indexer search key.

    ``script`` is matched against the cell's lock or type script according to
    ``script_type``. The filter's ``script`` and ``script_len_range`` apply to
    the *other* script of the cell.
    """

    model_config = ConfigDict(frozen=True)

    script: Script
    script_type: ScriptType = ScriptType.LOCK
    script_search_mode: ScriptSearchMode = ScriptSearchMode.PREFIX
    filter: Optional[SearchKeyFilter] = None
    with_data: bool = True

    def matches(self, cell: Cell, block_number: Optional[int] = None) -> bool:
        """
        Evaluate this key against a cell client-side.

        ``block_range`` is only checked when the cell's block number is known.
        """
        output = cell.output
        if self.script_type == ScriptType.LOCK:
            primary, other = output.lock, output.type
        else:
            primary, other = output.type, output.lock
        if not script_matches(self.script, primary, self.script_search_mode):
            return False

        f = self.filter
        if f is None:
            return True
        if f.script is not None and not script_matches(f.script, other, ScriptSearchMode.PREFIX):
            return False
        other_len = other.occupied_size if other is not None else 0
        if not _in_range(other_len, f.script_len_range):
            return False
        if not _in_range(len(cell.output_data), f.output_data_len_range):
            return False
        if not _in_range(output.capacity, f.output_capacity_range):
            return False
        if block_number is not None and not _in_range(block_number, f.block_range):
            return False
        return True

    @classmethod
    def for_free_cells(cls, lock: Script) -> SearchKey:
        """Cells locked by ``lock`` with no type script and empty data."""
        return cls(
            script=lock,
            script_type=ScriptType.LOCK,
            script_search_mode=ScriptSearchMode.EXACT,
            filter=SearchKeyFilter(script_len_range=(0, 1), output_data_len_range=(0, 1)),
            with_data=True,
        )

    @classmethod
    def for_type(cls, type_script: Script, lock: Optional[Script] = None,
                 with_data: bool = True) -> SearchKey:
        """Cells whose type script is exactly ``type_script``, optionally under ``lock``."""
        return cls(
            script=type_script,
            script_type=ScriptType.TYPE,
            script_search_mode=ScriptSearchMode.EXACT,
            filter=SearchKeyFilter(script=lock) if lock is not None else None,
            with_data=with_data,
        )


class FindCellsResponse(BaseModel):
    """One page of indexer results. ``last_cursor`` resumes after the last cell."""

    cells: List[Cell] = Field(default_factory=list)
    last_cursor: str = ""


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PROPOSED = "proposed"
    COMMITTED = "committed"
    UNKNOWN = "unknown"
    REJECTED = "rejected"


class FeeRateStatistics(BaseModel):
    """Fee rates (shannons/KB) observed over recent blocks."""

    mean: int
    median: int


class TransactionResponse(BaseModel):
    transaction: Transaction
    status: TransactionStatus
    block_hash: Optional[bytes] = None
    block_number: Optional[int] = None
    reason: Optional[str] = None


__all__ = [
    "Range",
    "SearchKey",
    "SearchKeyFilter",
    "FindCellsResponse",
    "TransactionStatus",
    "TransactionResponse",
    "FeeRateStatistics",
    "script_matches",
]
