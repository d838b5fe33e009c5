"""
Cells and the references that point at them.
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..codec import molecule
from ..enums import DepType
from ..runtime.codec import BytesLike, bytes_from, hex_from
from .fees import fixed_point_from
from .script import SCRIPT_CODEC, Script


class OutPoint(BaseModel):
    """A specific output of a specific transaction. Usable as a dict key."""

    model_config = ConfigDict(frozen=True)

    tx_hash: bytes
    index: int

    @field_validator("tx_hash", mode="before")
    @classmethod
    def _coerce_tx_hash(cls, v: Any) -> bytes:
        return bytes_from(v)

    @field_validator("tx_hash")
    @classmethod
    def _check_tx_hash(cls, v: bytes) -> bytes:
        if len(v) != 32:
            raise ValueError(f"tx_hash must be 32 bytes, got {len(v)}")
        return v

    @field_validator("index")
    @classmethod
    def _check_index(cls, v: int) -> int:
        if not 0 <= v <= 0xFFFFFFFF:
            raise ValueError(f"index out of u32 range: {v}")
        return v

    def to_bytes(self) -> bytes:
        return OUT_POINT_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> OutPoint:
        return OUT_POINT_CODEC.decode(bytes_from(data))

    def __repr__(self) -> str:
        return f"OutPoint({hex_from(self.tx_hash)}:{self.index})"


OUT_POINT_CODEC = molecule.Adapter(
    molecule.Struct([molecule.Byte32, molecule.U32]),
    lambda o: [o.tx_hash, o.index],
    lambda v: OutPoint(tx_hash=v[0], index=v[1]),
)


class CellInput(BaseModel):
    """Transaction input spending ``previous_output``."""

    model_config = ConfigDict(frozen=True)

    previous_output: OutPoint
    since: int = 0

    def to_bytes(self) -> bytes:
        return CELL_INPUT_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> CellInput:
        return CELL_INPUT_CODEC.decode(bytes_from(data))


CELL_INPUT_CODEC = molecule.Adapter(
    molecule.Struct([molecule.U64, OUT_POINT_CODEC]),
    lambda i: [i.since, i.previous_output],
    lambda v: CellInput(since=v[0], previous_output=v[1]),
)


class CellOutput(BaseModel):
    """Capacity, lock and optional type of a cell."""

    model_config = ConfigDict(frozen=True)

    capacity: int
    lock: Script
    type: Optional[Script] = None

    @field_validator("capacity")
    @classmethod
    def _check_capacity(cls, v: int) -> int:
        if not 0 <= v <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"capacity out of u64 range: {v}")
        return v

    @classmethod
    def with_min_capacity(cls, lock: Script, type_: Optional[Script] = None,
                          data: BytesLike = b"") -> CellOutput:
        """Build an output whose capacity equals its occupied capacity."""
        output = cls(capacity=0, lock=lock, type=type_)
        return output.model_copy(
            update={"capacity": fixed_point_from(output.occupied_size + len(bytes_from(data)))}
        )

    @property
    def occupied_size(self) -> int:
        """Bytes occupied excluding data: capacity field + scripts."""
        return 8 + self.lock.occupied_size + (self.type.occupied_size if self.type else 0)

    def occupied_capacity(self, data: BytesLike = b"") -> int:
        """Minimal capacity (in shannons) for this output carrying ``data``."""
        return fixed_point_from(self.occupied_size + len(bytes_from(data)))

    def is_plain(self) -> bool:
        return self.type is None

    def to_bytes(self) -> bytes:
        return CELL_OUTPUT_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> CellOutput:
        return CELL_OUTPUT_CODEC.decode(bytes_from(data))


CELL_OUTPUT_CODEC = molecule.Adapter(
    molecule.Table([molecule.U64, SCRIPT_CODEC, molecule.Option(SCRIPT_CODEC)]),
    lambda o: [o.capacity, o.lock, o.type],
    lambda v: CellOutput(capacity=v[0], lock=v[1], type=v[2]),
)


class CellDep(BaseModel):
    """Dependency resolved by the node when validating a transaction."""

    model_config = ConfigDict(frozen=True)

    out_point: OutPoint
    dep_type: DepType = DepType.CODE

    @field_validator("dep_type", mode="before")
    @classmethod
    def _coerce_dep_type(cls, v: Any) -> DepType:
        return DepType.parse(v)

    def to_bytes(self) -> bytes:
        return CELL_DEP_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> CellDep:
        return CELL_DEP_CODEC.decode(bytes_from(data))


CELL_DEP_CODEC = molecule.Adapter(
    molecule.Struct([OUT_POINT_CODEC, molecule.Byte]),
    lambda d: [d.out_point, int(d.dep_type)],
    lambda v: CellDep(out_point=v[0], dep_type=DepType.from_byte(v[1])),
)


class Cell(BaseModel):
    """A live or historical cell: where it is, what it holds."""

    model_config = ConfigDict(frozen=True)

    out_point: OutPoint
    output: CellOutput
    output_data: bytes = b""

    @field_validator("output_data", mode="before")
    @classmethod
    def _coerce_data(cls, v: Any) -> bytes:
        return bytes_from(v)

    @property
    def capacity(self) -> int:
        return self.output.capacity

    @property
    def occupied_size(self) -> int:
        return self.output.occupied_size + len(self.output_data)

    @property
    def capacity_free(self) -> int:
        """Capacity above what the cell must keep to exist."""
        return self.output.capacity - fixed_point_from(self.occupied_size)

    def to_bytes(self) -> bytes:
        return CELL_CODEC.encode(self)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> Cell:
        return CELL_CODEC.decode(bytes_from(data))


CELL_CODEC = molecule.Adapter(
    molecule.Table([OUT_POINT_CODEC, CELL_OUTPUT_CODEC, molecule.Bytes]),
    lambda c: [c.out_point, c.output, c.output_data],
    lambda v: Cell(out_point=v[0], output=v[1], output_data=v[2]),
)
