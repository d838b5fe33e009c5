"""
Known-script registry.

Maps ``(network, KnownScript)`` to the template a client needs to build a
script of that kind: its code hash, hash type and the cell deps that carry
its code. A client takes an immutable snapshot of the registry at
construction so lookups never change under an in-flight build.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from ..ckb.cell import CellDep, OutPoint
from ..ckb.script import Script
from ..enums import DepType, HashType, KnownScript
from ..runtime.codec import BytesLike
from ..runtime.errors import UnknownScriptError

MAINNET = "mainnet"
TESTNET = "testnet"

ADDRESS_PREFIXES = {MAINNET: "ckb", TESTNET: "ckt"}


@dataclass(frozen=True)
class KnownScriptInfo:
    """Template of a well-known script on one network."""
    code_hash: bytes
    hash_type: HashType
    cell_deps: Tuple[CellDep, ...] = ()

    def script(self, args: BytesLike = b"") -> Script:
        return Script(code_hash=self.code_hash, hash_type=self.hash_type, args=args)


def _info(code_hash: str, hash_type: HashType, *deps: Tuple[str, int, DepType]) -> KnownScriptInfo:
    return KnownScriptInfo(
        code_hash=bytes.fromhex(code_hash[2:]),
        hash_type=hash_type,
        cell_deps=tuple(
            CellDep(out_point=OutPoint(tx_hash=tx_hash, index=index), dep_type=dep_type)
            for tx_hash, index, dep_type in deps
        ),
    )


_SECP256K1_CODE_HASH = "0x9bd7e06f3ecf4be0f2fcd2188b23f1b9fcc88e5d4b65a8637b17723bbda3cce8"
_NERVOS_DAO_CODE_HASH = "0x82d76d1b75fe2fd9a27dfbaa65a039221a380d76c926f378d3f81cf3e7e13f2e"
_TYPE_ID_CODE_HASH = "0x00000000000000000000000000000000000000000000000000545950455f4944"

_MAINNET_SECP_DEP = ("0x71a7ba8fc96349fea0ed3a5c47992e3b4084b031a42264a018e0072e8172e46c",
                     0, DepType.DEP_GROUP)
_TESTNET_SECP_DEP = ("0xf8de3bb47d055cdf460d93a2a6e1b05f7432f9777c8c474abf4eec1d4aee5d37",
                     0, DepType.DEP_GROUP)

MAINNET_SCRIPTS: Dict[KnownScript, KnownScriptInfo] = {
    KnownScript.SECP256K1_BLAKE160: _info(_SECP256K1_CODE_HASH, HashType.TYPE, _MAINNET_SECP_DEP),
    KnownScript.TYPE_ID: _info(_TYPE_ID_CODE_HASH, HashType.TYPE),
    KnownScript.NERVOS_DAO: _info(
        _NERVOS_DAO_CODE_HASH, HashType.TYPE,
        ("0xe2fb199810d49a4d8beec56718ba2593b665db9d52299a0f9e6e75416d73ff5c", 2, DepType.CODE),
    ),
    KnownScript.XUDT: _info(
        "0x50bd8d6680b8b9cf98b73f3c08faf8b2a21914311954118ad6609be6e78a1b95", HashType.DATA1,
        ("0xc07844ce21b38e4b071dd0e1ee3b0e27afd8d7532491327f39b786343f558ab7", 0, DepType.CODE),
    ),
    KnownScript.SUDT: _info(
        "0x5e7a36a77e68eecc013dfa2fe6a23f3b6c344b04005808694ae6dd45eea4cfd5", HashType.TYPE,
        ("0xc7813f6a415144643970c2e88e0bb6ca6a8edc5dd7c1022746f628284a9936d5", 0, DepType.CODE),
    ),
    KnownScript.OMNI_LOCK: _info(
        "0x9b819793a64463aed77c615d6cb226eea5487ccfc0783043a587254cda2b6f26", HashType.TYPE,
        ("0xc76edf469816aa22f416503c38d0b533d2a018e253e379f134c3985b3472c842", 0, DepType.CODE),
        _MAINNET_SECP_DEP,
    ),
}

TESTNET_SCRIPTS: Dict[KnownScript, KnownScriptInfo] = {
    KnownScript.SECP256K1_BLAKE160: _info(_SECP256K1_CODE_HASH, HashType.TYPE, _TESTNET_SECP_DEP),
    KnownScript.TYPE_ID: _info(_TYPE_ID_CODE_HASH, HashType.TYPE),
    KnownScript.NERVOS_DAO: _info(
        _NERVOS_DAO_CODE_HASH, HashType.TYPE,
        ("0x8f8c79eb6671709633fe6a46de93c0fedc9c1b8a6527a18d3983879542635c9f", 2, DepType.CODE),
    ),
    KnownScript.XUDT: _info(
        "0x25c29dc317811a6f6f3985a7a9ebc4838bd388d19d0feeecf0bcd60f6c0975bb", HashType.TYPE,
        ("0xbf6fb538763efec2a70a6a3dcb7242787087e1030c4e7d86585bc63a9d337f5f", 0, DepType.CODE),
    ),
    KnownScript.SUDT: _info(
        "0xc5e5dcf215925f7ef4dfaf5f4b4f105bc321c02776d6e7d52a1db3fcd9d011a4", HashType.TYPE,
        ("0xe12877ebd2c3c364dc46c5c992bcfaf4fee33fa13eebdf82c591fc9825aab769", 0, DepType.CODE),
    ),
    KnownScript.OMNI_LOCK: _info(
        "0xf329effd1c475a2978453c8600e1eaf0bc2087ee093c3ee64cc96ec6847752cb", HashType.TYPE,
        ("0xec18bf0d857c981c3d1f4e17999b9b90c484b303378e94de1a57b0872f5d4602", 0, DepType.CODE),
        _TESTNET_SECP_DEP,
    ),
}

DEFAULT_KNOWN_SCRIPTS: Dict[str, Dict[KnownScript, KnownScriptInfo]] = {
    MAINNET: MAINNET_SCRIPTS,
    TESTNET: TESTNET_SCRIPTS,
}


class KnownScriptRegistry:
    """
    Read-only view of known-script tables for every network.

    Example:
        registry = KnownScriptRegistry.default().with_overrides(
            "testnet", {KnownScript.XUDT: my_devnet_xudt}
        )
    """

    def __init__(self, tables: Mapping[str, Mapping[KnownScript, KnownScriptInfo]]):
        self._tables: Mapping[str, Mapping[KnownScript, KnownScriptInfo]] = MappingProxyType({
            network: MappingProxyType(dict(table)) for network, table in tables.items()
        })

    @classmethod
    def default(cls) -> KnownScriptRegistry:
        return cls(DEFAULT_KNOWN_SCRIPTS)

    @property
    def networks(self) -> Sequence[str]:
        return tuple(self._tables)

    def with_overrides(self, network: str,
                       scripts: Mapping[KnownScript, KnownScriptInfo]) -> KnownScriptRegistry:
        """New registry with ``scripts`` replacing or adding entries of ``network``."""
        tables = {n: dict(t) for n, t in self._tables.items()}
        tables.setdefault(network, {}).update(scripts)
        return KnownScriptRegistry(tables)

    def get(self, name: Union[KnownScript, str], network: str) -> KnownScriptInfo:
        """
        Look up a template.

        Raises:
            UnknownScriptError: The network has no entry for ``name``
        """
        try:
            key = KnownScript(name)
        except ValueError:
            raise UnknownScriptError(name, network) from None
        info = self._tables.get(network, {}).get(key)
        if info is None:
            raise UnknownScriptError(key, network)
        return info

    def find(self, name: Union[KnownScript, str], network: str) -> Optional[KnownScriptInfo]:
        try:
            return self.get(name, network)
        except UnknownScriptError:
            return None
