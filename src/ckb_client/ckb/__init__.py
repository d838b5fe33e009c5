"""
CKB ledger model: scripts, cells, witnesses and transactions.
"""

from .cell import Cell, CellDep, CellInput, CellOutput, OutPoint
from .fees import DEFAULT_MIN_FEE_RATE, SHANNONS_PER_CKB, calculate_fee, fixed_point_from
from .script import Script
from .transaction import SignHashInfo, Transaction
from .udt import udt_balance_from, udt_data_from
from .witness import WitnessArgs

__all__ = [
    "Cell",
    "CellDep",
    "CellInput",
    "CellOutput",
    "OutPoint",
    "Script",
    "SignHashInfo",
    "Transaction",
    "WitnessArgs",
    "DEFAULT_MIN_FEE_RATE",
    "SHANNONS_PER_CKB",
    "calculate_fee",
    "fixed_point_from",
    "udt_balance_from",
    "udt_data_from",
]
