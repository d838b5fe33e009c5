"""
Enumerations shared across the SDK.
"""

from __future__ import annotations
from enum import Enum, IntEnum
from typing import Any

from .runtime.errors import MalformedEncodingError


class HashType(IntEnum):
    """How a script's code_hash is matched against on-chain code."""

    DATA = 0
    TYPE = 1
    DATA1 = 2
    DATA2 = 4

    @classmethod
    def from_byte(cls, value: int) -> HashType:
        """Decode a wire discriminant, rejecting unknown values."""
        try:
            return cls(value)
        except ValueError:
            raise MalformedEncodingError(f"Invalid hash type discriminant {value}") from None

    @classmethod
    def parse(cls, value: Any) -> HashType:
        if isinstance(value, HashType):
            return value
        if isinstance(value, str):
            return cls[value.upper()]
        return cls(value)

    def to_json(self) -> str:
        return self.name.lower()


class DepType(IntEnum):
    """How a cell dependency is resolved."""

    CODE = 0
    DEP_GROUP = 1

    @classmethod
    def from_byte(cls, value: int) -> DepType:
        try:
            return cls(value)
        except ValueError:
            raise MalformedEncodingError(f"Invalid dep type discriminant {value}") from None

    @classmethod
    def parse(cls, value: Any) -> DepType:
        if isinstance(value, DepType):
            return value
        if isinstance(value, str):
            normalized = value.replace("Group", "_group").upper()
            return cls[normalized]
        return cls(value)

    def to_json(self) -> str:
        return self.name.lower()


class KnownScript(str, Enum):
    """Well-known script templates resolvable per network."""

    SECP256K1_BLAKE160 = "Secp256k1Blake160"
    SECP256K1_MULTISIG = "Secp256k1Multisig"
    ANYONE_CAN_PAY = "AnyoneCanPay"
    TYPE_ID = "TypeId"
    XUDT = "XUdt"
    SUDT = "Sudt"
    JOY_ID = "JoyId"
    COTA = "COTA"
    OMNI_LOCK = "OmniLock"
    NERVOS_DAO = "NervosDao"
    SINGLE_USE_LOCK = "SingleUseLock"
    OUTPUT_TYPE_PROXY_LOCK = "OutputTypeProxyLock"


class OutputsValidator(str, Enum):
    """Node-side acceptance policy for send_transaction."""

    PASSTHROUGH = "passthrough"
    WELL_KNOWN_SCRIPTS_ONLY = "well_known_scripts_only"


class ScriptType(str, Enum):
    """Which script of a cell a search key matches."""

    LOCK = "lock"
    TYPE = "type"


class ScriptSearchMode(str, Enum):
    PREFIX = "prefix"
    EXACT = "exact"


class Order(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SignerType(str, Enum):
    """Signing ecosystem of a signer."""

    CKB = "CKB"
    BTC = "BTC"
    EVM = "EVM"


class SignerSignType(str, Enum):
    """Message signature scheme, used to dispatch verification."""

    UNKNOWN = "Unknown"
    CKB_SECP256K1 = "CkbSecp256k1"
    BTC_ECDSA = "BtcEcdsa"
    EVM_PERSONAL = "EvmPersonal"


__all__ = [
    "HashType",
    "DepType",
    "KnownScript",
    "OutputsValidator",
    "ScriptType",
    "ScriptSearchMode",
    "Order",
    "SignerType",
    "SignerSignType",
]
