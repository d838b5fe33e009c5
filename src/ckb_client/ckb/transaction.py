"""
Transaction model.

A transaction consumes input cells and creates output cells. Its hash covers
the raw part only (no witnesses), so witnesses can be filled in after the hash
is fixed. The model is mutable for incremental building; operations that
complete or sign a transaction work on a ``clone()`` and return it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..codec import Hasher, ckb_hash, hash_witness_to_hasher, molecule
from ..enums import KnownScript
from ..runtime.codec import BytesLike, bytes_from, hex_from
from ..runtime.errors import CellNotFoundError, MalformedEncodingError
from .cell import (
    CELL_DEP_CODEC,
    CELL_INPUT_CODEC,
    CELL_OUTPUT_CODEC,
    Cell,
    CellDep,
    CellInput,
    CellOutput,
)
from .fees import TX_SIZE_OVERHEAD, calculate_fee
from .script import Script
from .witness import WitnessArgs

if TYPE_CHECKING:
    from ..client.client import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignHashInfo:
    """Digest a lock group must sign and the witness index holding its signature."""

    message: bytes
    position: int


class Transaction(BaseModel):
    """CKB transaction."""

    version: int = 0
    cell_deps: List[CellDep] = Field(default_factory=list)
    header_deps: List[bytes] = Field(default_factory=list)
    inputs: List[CellInput] = Field(default_factory=list)
    outputs: List[CellOutput] = Field(default_factory=list)
    outputs_data: List[bytes] = Field(default_factory=list)
    witnesses: List[bytes] = Field(default_factory=list)

    @field_validator("header_deps", "outputs_data", "witnesses", mode="before")
    @classmethod
    def _coerce_byte_lists(cls, v: Any) -> List[bytes]:
        return [bytes_from(item) for item in v]

    @field_validator("header_deps")
    @classmethod
    def _check_header_deps(cls, v: List[bytes]) -> List[bytes]:
        for h in v:
            if len(h) != 32:
                raise ValueError(f"header dep must be 32 bytes, got {len(h)}")
        return v

    @model_validator(mode="after")
    def _align_outputs_data(self) -> Transaction:
        if len(self.outputs_data) > len(self.outputs):
            raise ValueError(
                f"{len(self.outputs_data)} outputs_data entries for {len(self.outputs)} outputs"
            )
        self.outputs_data.extend(b"" for _ in range(len(self.outputs) - len(self.outputs_data)))
        return self

    def clone(self) -> Transaction:
        """Deep copy; mutations of the copy never reach the original."""
        return self.model_copy(deep=True)

    # Serialization

    def raw_to_bytes(self) -> bytes:
        return RAW_TRANSACTION_CODEC.encode(self)

    def to_bytes(self) -> bytes:
        return TRANSACTION_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> Transaction:
        return TRANSACTION_CODEC.decode(bytes_from(data))

    def hash(self) -> bytes:
        """Transaction hash: CKB hash of the raw transaction (witnesses excluded)."""
        return ckb_hash(self.raw_to_bytes())

    def hash_full(self) -> bytes:
        """CKB hash of the whole transaction, witnesses included."""
        return ckb_hash(self.to_bytes())

    def estimate_size(self) -> int:
        return len(self.to_bytes()) + TX_SIZE_OVERHEAD

    def estimate_fee(self, fee_rate: int) -> int:
        return calculate_fee(self.estimate_size(), fee_rate)

    # Building

    def add_cell_deps(self, *deps: Union[CellDep, Iterable[CellDep]]) -> None:
        """Append cell deps, skipping ones already present."""
        for dep in _flatten(deps):
            if dep not in self.cell_deps:
                self.cell_deps.append(dep)

    async def add_cell_deps_of_known_scripts(self, client: Client,
                                             *names: Union[KnownScript, str]) -> None:
        for name in names:
            self.add_cell_deps(await client.known_script_cell_deps(name))

    def add_header_deps(self, *hashes: BytesLike) -> None:
        for h in hashes:
            raw = bytes_from(h)
            if raw not in self.header_deps:
                self.header_deps.append(raw)

    def add_input(self, cell: Union[Cell, CellInput], since: int = 0) -> int:
        """Append an input (a Cell is spent by its out point). Returns its index."""
        if isinstance(cell, Cell):
            cell = CellInput(previous_output=cell.out_point, since=since)
        self.inputs.append(cell)
        return len(self.inputs) - 1

    def add_output(self, output: CellOutput, data: BytesLike = b"") -> int:
        """Append an output with its data. Returns its index."""
        self.outputs.append(output)
        self.outputs_data.append(bytes_from(data))
        return len(self.outputs) - 1

    # Witnesses

    def get_witness_args_at(self, index: int) -> Optional[WitnessArgs]:
        """Decode the witness at ``index``; None when absent or empty."""
        if index >= len(self.witnesses) or not self.witnesses[index]:
            return None
        return WitnessArgs.from_bytes(self.witnesses[index])

    def set_witness_at(self, index: int, witness: BytesLike) -> None:
        """Store raw witness bytes, padding earlier slots with empty witnesses."""
        if index >= len(self.witnesses):
            self.witnesses.extend(b"" for _ in range(index + 1 - len(self.witnesses)))
        self.witnesses[index] = bytes_from(witness)

    def set_witness_args_at(self, index: int, witness: WitnessArgs) -> None:
        self.set_witness_at(index, witness.to_bytes())

    # Input resolution

    async def get_input_cell(self, index: int, client: Client) -> Cell:
        """Resolve the cell spent by input ``index``."""
        out_point = self.inputs[index].previous_output
        cell = await client.get_cell(out_point)
        if cell is None:
            raise CellNotFoundError(out_point)
        return cell

    async def find_input_index_by_lock(self, lock: Script, client: Client) -> Optional[int]:
        """Index of the first input locked by ``lock``, or None."""
        for i in range(len(self.inputs)):
            cell = await self.get_input_cell(i, client)
            if cell.output.lock == lock:
                return i
        return None

    async def get_inputs_capacity(self, client: Client) -> int:
        total = 0
        for i in range(len(self.inputs)):
            total += (await self.get_input_cell(i, client)).output.capacity
        return total

    def get_outputs_capacity(self) -> int:
        return sum(output.capacity for output in self.outputs)

    async def get_fee(self, client: Client) -> int:
        """Capacity left over for the miner: inputs minus outputs."""
        return await self.get_inputs_capacity(client) - self.get_outputs_capacity()

    # Signing support

    async def prepare_sighash_all_witness(self, lock: Script, lock_len: int, client: Client) -> None:
        """
        Reserve ``lock_len`` zero bytes in the lock slot of the first witness
        of ``lock``'s group, so size and fee estimates match the signed form.

        Does nothing when no input is locked by ``lock``.
        """
        position = await self.find_input_index_by_lock(lock, client)
        if position is None:
            return
        witness = self.get_witness_args_at(position) or WitnessArgs()
        self.set_witness_args_at(position, witness.model_copy(update={"lock": bytes(lock_len)}))

    async def get_sign_hash_info(self, lock: Script, client: Client) -> Optional[SignHashInfo]:
        """
        Compute the sighash-all digest for the group of inputs locked by ``lock``.

        The digest covers the transaction hash, then every witness at a group
        input index, then every witness beyond the inputs, each framed as a u64
        little-endian length followed by its bytes.

        Returns:
            SignHashInfo, or None when no input is locked by ``lock``
        """
        position: Optional[int] = None
        hasher = Hasher()
        hasher.update(self.hash())

        for i, witness in enumerate(self.witnesses):
            if i < len(self.inputs):
                cell = await self.get_input_cell(i, client)
                if cell.output.lock != lock:
                    continue
                if position is None:
                    position = i
            if position is None:
                return None
            hash_witness_to_hasher(witness, hasher)

        if position is None:
            return None
        message = hasher.digest()
        logger.debug(f"Sighash-all digest {hex_from(message)} at witness {position}")
        return SignHashInfo(message=message, position=position)

    def __repr__(self) -> str:
        return (f"Transaction(inputs={len(self.inputs)}, outputs={len(self.outputs)}, "
                f"cell_deps={len(self.cell_deps)}, witnesses={len(self.witnesses)})")


def _flatten(items: Iterable[Any]) -> Iterable[Any]:
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from item
        else:
            yield item


def _raw_fields(version, cell_deps, header_deps, inputs, outputs, outputs_data):
    if len(outputs) != len(outputs_data):
        raise MalformedEncodingError(
            f"{len(outputs)} outputs but {len(outputs_data)} outputs_data entries"
        )
    return dict(version=version, cell_deps=cell_deps, header_deps=header_deps,
                inputs=inputs, outputs=outputs, outputs_data=outputs_data)


RAW_TRANSACTION_CODEC = molecule.Adapter(
    molecule.Table([
        molecule.U32,
        molecule.FixVec(CELL_DEP_CODEC),
        molecule.Byte32Vec,
        molecule.FixVec(CELL_INPUT_CODEC),
        molecule.DynVec(CELL_OUTPUT_CODEC),
        molecule.BytesVec,
    ]),
    lambda tx: [tx.version, tx.cell_deps, tx.header_deps, tx.inputs, tx.outputs, tx.outputs_data],
    lambda v: _raw_fields(*v),
)

TRANSACTION_CODEC = molecule.Adapter(
    molecule.Table([RAW_TRANSACTION_CODEC, molecule.BytesVec]),
    lambda tx: [tx, tx.witnesses],
    lambda v: Transaction(**v[0], witnesses=v[1]),
)
