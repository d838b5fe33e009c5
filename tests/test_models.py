"""Tests for the ledger data model"""

import pytest
from pydantic import ValidationError

from ckb_client.ckb import (
    Cell,
    CellDep,
    CellInput,
    CellOutput,
    OutPoint,
    Script,
    Transaction,
    WitnessArgs,
    calculate_fee,
    fixed_point_from,
    udt_balance_from,
    udt_data_from,
)
from ckb_client.enums import DepType, HashType
from ckb_client.runtime.errors import MalformedEncodingError

from helpers.mocks import make_script

ZERO_HASH = b"\x00" * 32


def sample_transaction() -> Transaction:
    lock = make_script(b"\x01" * 20)
    return Transaction(
        version=0,
        cell_deps=[CellDep(out_point=OutPoint(tx_hash=b"\x22" * 32, index=0), dep_type=DepType.DEP_GROUP)],
        header_deps=[b"\x33" * 32],
        inputs=[CellInput(previous_output=OutPoint(tx_hash=b"\x44" * 32, index=1), since=5)],
        outputs=[
            CellOutput(capacity=fixed_point_from(100), lock=lock),
            CellOutput(capacity=fixed_point_from(200), lock=lock, type=make_script(code_byte=0x55)),
        ],
        outputs_data=[b"", udt_data_from(10)],
        witnesses=[WitnessArgs(lock=bytes(65)).to_bytes()],
    )


class TestScript:
    """Script values"""

    def test_zero_script_encoding(self):
        """Zero code hash, data hash type and empty args"""
        script = Script(code_hash=ZERO_HASH, hash_type=HashType.DATA, args=b"")
        encoded = script.to_bytes()

        assert len(encoded) == 53
        assert encoded[:4] == (53).to_bytes(4, "little")
        assert encoded[4:16] == b"".join(n.to_bytes(4, "little") for n in (16, 48, 49))
        assert encoded[16:48] == ZERO_HASH
        assert encoded[48] == 0
        assert encoded[49:] == b"\x00" * 4
        assert Script.from_bytes(encoded) == script

    def test_loose_inputs(self):
        script = Script(code_hash="0x" + "11" * 32, hash_type="type", args=[1, 2])
        assert script.code_hash == b"\x11" * 32
        assert script.hash_type == HashType.TYPE
        assert script.args == b"\x01\x02"

    def test_rejects_short_code_hash(self):
        with pytest.raises(ValidationError):
            Script(code_hash=b"\x00" * 31, hash_type=HashType.DATA)

    def test_unknown_hash_type_on_decode(self):
        encoded = bytearray(Script(code_hash=ZERO_HASH, hash_type=HashType.DATA).to_bytes())
        encoded[48] = 3
        with pytest.raises(MalformedEncodingError):
            Script.from_bytes(bytes(encoded))

    def test_immutable_and_hashable(self):
        script = make_script(b"\x01")
        with pytest.raises(ValidationError):
            script.args = b"\x02"
        assert {script: 1}[make_script(b"\x01")] == 1

    def test_hash(self):
        script = make_script(b"\x01")
        assert len(script.hash()) == 32
        assert script.hash() != make_script(b"\x02").hash()

    def test_occupied_size(self):
        assert make_script(b"\x00" * 20).occupied_size == 53


class TestCells:
    """Out points, outputs, cells and deps"""

    def test_out_point_layout(self):
        out_point = OutPoint(tx_hash=b"\x01" * 32, index=2)
        assert out_point.to_bytes() == b"\x01" * 32 + b"\x02\x00\x00\x00"
        assert OutPoint.from_bytes(out_point.to_bytes()) == out_point

    def test_cell_input_layout(self):
        cell_input = CellInput(previous_output=OutPoint(tx_hash=b"\x01" * 32, index=0), since=1)
        assert cell_input.to_bytes()[:8] == b"\x01" + b"\x00" * 7
        assert CellInput.from_bytes(cell_input.to_bytes()) == cell_input

    def test_cell_dep_roundtrip(self):
        dep = CellDep(out_point=OutPoint(tx_hash=b"\x01" * 32, index=0), dep_type="dep_group")
        assert dep.to_bytes()[-1] == 1
        assert CellDep.from_bytes(dep.to_bytes()) == dep

    def test_cell_output_optional_type(self):
        output = CellOutput(capacity=1, lock=make_script())
        assert CellOutput.from_bytes(output.to_bytes()).type is None
        typed = CellOutput(capacity=1, lock=make_script(), type=make_script(code_byte=0x22))
        assert CellOutput.from_bytes(typed.to_bytes()) == typed

    def test_occupied_capacity(self):
        lock = make_script(b"\x00" * 20)
        output = CellOutput(capacity=0, lock=lock)
        assert output.occupied_size == 8 + 53
        assert output.occupied_capacity(b"\x00" * 16) == fixed_point_from(61 + 16)
        assert CellOutput.with_min_capacity(lock, data=b"\x00" * 16).capacity == fixed_point_from(77)

    def test_capacity_free(self):
        lock = make_script(b"\x00" * 20)
        cell = Cell(
            out_point=OutPoint(tx_hash=ZERO_HASH, index=0),
            output=CellOutput(capacity=fixed_point_from(100), lock=lock),
            output_data=b"\x00\x00",
        )
        assert cell.occupied_size == 63
        assert cell.capacity_free == fixed_point_from(37)
        assert Cell.from_bytes(cell.to_bytes()) == cell


class TestWitnessArgs:

    def test_absent_vs_empty(self):
        absent = WitnessArgs()
        empty = WitnessArgs(lock=b"")
        assert absent.to_bytes() != empty.to_bytes()
        assert WitnessArgs.from_bytes(absent.to_bytes()).lock is None
        assert WitnessArgs.from_bytes(empty.to_bytes()).lock == b""

    def test_roundtrip(self):
        witness = WitnessArgs(lock=bytes(65), input_type="0x01", output_type=None)
        assert WitnessArgs.from_bytes(witness.to_bytes()) == witness


class TestTransaction:
    """Transaction model and encoding"""

    def test_roundtrip(self):
        tx = sample_transaction()
        assert Transaction.from_bytes(tx.to_bytes()) == tx

    def test_hash_excludes_witnesses(self):
        tx = sample_transaction()
        signed = tx.clone()
        signed.witnesses = [b"\x01\x02"]
        assert signed.hash() == tx.hash()
        assert signed.hash_full() != tx.hash_full()

    def test_outputs_data_padded(self):
        tx = Transaction(outputs=[CellOutput(capacity=1, lock=make_script())])
        assert tx.outputs_data == [b""]

    def test_outputs_data_longer_than_outputs(self):
        with pytest.raises(ValidationError):
            Transaction(outputs=[], outputs_data=[b"\x01"])

    def test_decode_rejects_data_mismatch(self):
        tx = sample_transaction()
        tx.outputs_data.append(b"")
        with pytest.raises(MalformedEncodingError):
            Transaction.from_bytes(tx.to_bytes())

    def test_clone_is_deep(self):
        tx = sample_transaction()
        copy = tx.clone()
        copy.add_output(CellOutput(capacity=1, lock=make_script()))
        copy.witnesses[0] = b""
        assert len(tx.outputs) == 2
        assert tx.witnesses[0] != b""

    def test_add_cell_deps_dedups(self):
        tx = sample_transaction()
        dep = tx.cell_deps[0]
        other = CellDep(out_point=OutPoint(tx_hash=b"\x66" * 32, index=0))
        tx.add_cell_deps(dep, [other, dep])
        assert tx.cell_deps == [dep, other]

    def test_add_header_deps_dedups(self):
        tx = sample_transaction()
        tx.add_header_deps("0x" + "aa" * 32, b"\xaa" * 32, b"\xbb" * 32)
        assert tx.header_deps == [b"\xaa" * 32, b"\xbb" * 32]
        assert Transaction.from_bytes(tx.to_bytes()).header_deps == tx.header_deps

    def test_add_input_from_cell(self):
        tx = Transaction()
        cell = Cell(out_point=OutPoint(tx_hash=ZERO_HASH, index=3),
                    output=CellOutput(capacity=1, lock=make_script()))
        assert tx.add_input(cell) == 0
        assert tx.inputs[0].previous_output == cell.out_point

    def test_witness_access(self):
        tx = Transaction()
        assert tx.get_witness_args_at(2) is None
        tx.set_witness_args_at(2, WitnessArgs(lock=b"\x01"))
        assert tx.witnesses[:2] == [b"", b""]
        assert tx.get_witness_args_at(2).lock == b"\x01"

    def test_estimate_fee(self):
        tx = sample_transaction()
        size = len(tx.to_bytes()) + 4
        assert tx.estimate_size() == size
        assert tx.estimate_fee(1000) == size
        assert tx.estimate_fee(1500) == calculate_fee(size, 1500)


class TestFeesAndUdt:

    def test_fee_rounds_up(self):
        assert calculate_fee(1001, 1) == 2
        assert calculate_fee(1000, 1) == 1
        assert calculate_fee(0, 1000) == 0

    def test_fee_rejects_negative(self):
        with pytest.raises(ValueError):
            calculate_fee(-1, 1000)

    def test_udt_amount(self):
        data = udt_data_from(1 << 100, b"\xff")
        assert len(data) == 17
        assert udt_balance_from(data) == 1 << 100

    def test_udt_short_data(self):
        with pytest.raises(MalformedEncodingError):
            udt_balance_from(b"\x00" * 15)
