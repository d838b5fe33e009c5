"""
Transaction balancing.

Completes a partially built transaction: collects the payer's cells as inputs
until outputs (and the fee) are covered, then routes leftover capacity or
tokens into change. Every operation works on a copy of the transaction and
only appends inputs and outputs; existing ones keep their order.
"""

from __future__ import annotations
import inspect
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Set, Union

from ..ckb.cell import Cell, CellOutput, OutPoint
from ..ckb.script import Script
from ..ckb.transaction import Transaction
from ..ckb.udt import udt_balance_from, udt_data_from
from ..client.types import SearchKey
from ..runtime.codec import hex_from
from ..runtime.errors import InsufficientFundsError

if TYPE_CHECKING:
    from ..client.client import Client
    from ..signers.signer import Signer

logger = logging.getLogger(__name__)

# Receives the transaction to change (mutable) and the capacity to dispose of.
# Returns 0 when done, or the capacity it needs to make a valid change.
ChangeFunction = Callable[[Transaction, int], Union[int, Awaitable[int]]]


class TransactionBalancer:
    """
    Input collection and change completion.

    Stateless: each method takes the payer signer, whose addresses own the
    cells to collect and whose client resolves them.

    Example:
        tx = await TransactionBalancer.complete_inputs_by_capacity(tx, signer)
        tx = await TransactionBalancer.complete_fee_change_to_lock(tx, signer, change_lock)
    """

    # Inputs

    @staticmethod
    async def _collect_inputs(tx: Transaction, payer: Signer,
                              key_for: Callable[[Script], SearchKey],
                              accept: Callable[[Cell, Script], bool],
                              value_of: Callable[[Cell], int],
                              missing: int, what: str) -> Transaction:
        used: Set[OutPoint] = {i.previous_output for i in tx.inputs}
        collected = 0
        for address in await payer.get_address_objs():
            lock = address.script
            async for cell in payer.client.find_cells(key_for(lock)):
                if cell.out_point in used or not accept(cell, lock):
                    continue
                tx.add_input(cell)
                used.add(cell.out_point)
                collected += value_of(cell)
                logger.debug(f"Collected {cell.out_point!r} for {what}, {collected}/{missing}")
                if collected >= missing:
                    return tx
        raise InsufficientFundsError(
            f"Insufficient {what}: missing {missing - collected}",
            {"required": missing, "collected": collected},
        )

    @classmethod
    async def complete_inputs_by_capacity(cls, tx: Transaction, payer: Signer,
                                          capacity_tweak: int = 0) -> Transaction:
        """
        Add the payer's free cells until inputs cover outputs plus ``capacity_tweak``.

        Free cells have no type script and empty data. Cells are taken in
        ascending order and the ones already spent by ``tx`` are skipped.

        Raises:
            InsufficientFundsError: The payer's free cells cannot cover the need
        """
        tx = tx.clone()
        need = tx.get_outputs_capacity() + capacity_tweak
        have = await tx.get_inputs_capacity(payer.client)
        if have >= need:
            return tx
        return await cls._collect_inputs(
            tx, payer,
            key_for=SearchKey.for_free_cells,
            accept=lambda cell, lock: (cell.output.lock == lock and cell.output.is_plain()
                                       and not cell.output_data),
            value_of=lambda cell: cell.output.capacity,
            missing=need - have,
            what="capacity",
        )

    @classmethod
    async def complete_inputs_by_udt(cls, tx: Transaction, payer: Signer,
                                     udt_type: Script) -> Transaction:
        """
        Add the payer's ``udt_type`` cells until input tokens cover output tokens.

        Raises:
            InsufficientFundsError: The payer's token cells cannot cover the need
            MalformedEncodingError: A token cell holds less than 16 bytes of data
        """
        tx = tx.clone()
        need = cls.get_outputs_udt_balance(tx, udt_type)
        have = await cls.get_inputs_udt_balance(payer.client, tx, udt_type)
        if have >= need:
            return tx
        return await cls._collect_inputs(
            tx, payer,
            key_for=lambda lock: SearchKey.for_type(udt_type, lock=lock),
            accept=lambda cell, lock: cell.output.lock == lock and cell.output.type == udt_type,
            value_of=lambda cell: udt_balance_from(cell.output_data),
            missing=need - have,
            what="UDT balance",
        )

    # UDT accounting

    @staticmethod
    async def get_inputs_udt_balance(client: Client, tx: Transaction, udt_type: Script) -> int:
        total = 0
        for i in range(len(tx.inputs)):
            cell = await tx.get_input_cell(i, client)
            if cell.output.type == udt_type:
                total += udt_balance_from(cell.output_data)
        return total

    @staticmethod
    def get_outputs_udt_balance(tx: Transaction, udt_type: Script) -> int:
        return sum(
            udt_balance_from(data)
            for output, data in zip(tx.outputs, tx.outputs_data)
            if output.type == udt_type
        )

    @classmethod
    async def complete_udt_change_to_lock(cls, tx: Transaction, client: Client,
                                          udt_type: Script, change_lock: Script) -> Transaction:
        """
        Append an output returning surplus input tokens to ``change_lock``.

        The change cell gets its minimal capacity; run fee completion afterwards
        to fund it.

        Raises:
            InsufficientFundsError: Outputs carry more tokens than inputs
        """
        tx = tx.clone()
        surplus = await cls.get_inputs_udt_balance(client, tx, udt_type) - cls.get_outputs_udt_balance(tx, udt_type)
        if surplus < 0:
            raise InsufficientFundsError(
                f"Outputs exceed inputs by {-surplus} tokens", {"missing": -surplus}
            )
        if surplus == 0:
            return tx
        data = udt_data_from(surplus)
        tx.add_output(CellOutput.with_min_capacity(change_lock, udt_type, data), data)
        logger.debug(f"UDT change of {surplus} to {change_lock!r}")
        return tx

    # Fee

    @classmethod
    async def complete_fee_by(cls, tx: Transaction, payer: Signer, change_fn: ChangeFunction,
                              fee_rate: Optional[int] = None) -> Transaction:
        """
        Collect inputs for the fee and let ``change_fn`` dispose of the leftover.

        The size is measured on the transaction prepared by ``payer``, so the
        placeholder witnesses match the real signatures. Repeats until the fee
        estimate no longer grows.

        Args:
            tx: Transaction to complete
            payer: Signer whose free cells pay
            change_fn: Called with the transaction and the leftover after the fee
            fee_rate: Shannons per 1000 bytes; the client's fee rate by default

        Raises:
            InsufficientFundsError: The payer cannot cover the outputs and the fee
        """
        client = payer.client
        if fee_rate is None:
            fee_rate = await client.get_fee_rate()

        least_fee = 0
        least_extra = 0
        iteration = 0
        while True:
            iteration += 1
            tx = await cls.complete_inputs_by_capacity(tx, payer, least_fee + least_extra)
            tx = await payer.prepare_transaction(tx)
            least_fee = max(least_fee, tx.estimate_fee(fee_rate))
            leftover = await tx.get_fee(client)
            logger.debug(f"Fee iteration {iteration}: fee {least_fee}, leftover {leftover}, "
                         f"extra {least_extra}")
            if leftover < least_fee + least_extra:
                continue

            extra = leftover - least_fee
            if extra == 0:
                return tx

            changed = tx.clone()
            needed = change_fn(changed, extra)
            if inspect.isawaitable(needed):
                needed = await needed
            if needed > 0:
                least_extra = needed
                continue

            changed = await payer.prepare_transaction(changed)
            changed_fee = changed.estimate_fee(fee_rate)
            if changed_fee <= least_fee:
                logger.debug(f"Fee completed with {least_fee} shannons, tx {hex_from(changed.hash())}")
                return changed
            least_fee = changed_fee

    @classmethod
    async def complete_fee_change_to_lock(cls, tx: Transaction, payer: Signer, change_lock: Script,
                                          fee_rate: Optional[int] = None) -> Transaction:
        """
        Pay the fee and send the leftover capacity to ``change_lock``.

        A trailing plain output already locked by ``change_lock`` absorbs the
        leftover (and pays the fee from its spare capacity). Otherwise a change
        output is appended, collecting more inputs when the leftover cannot
        fund its occupied capacity.
        """
        if tx.outputs and tx.outputs[-1].lock == change_lock and tx.outputs[-1].is_plain():
            return await cls.complete_fee_change_to_output(tx, payer, len(tx.outputs) - 1, fee_rate)

        def change(changed: Transaction, capacity: int) -> int:
            output = CellOutput(capacity=0, lock=change_lock)
            occupied = output.occupied_capacity()
            if capacity < occupied:
                return occupied
            changed.add_output(output.model_copy(update={"capacity": capacity}))
            return 0

        return await cls.complete_fee_by(tx, payer, change, fee_rate)

    @classmethod
    async def complete_fee_change_to_output(cls, tx: Transaction, payer: Signer, index: int,
                                            fee_rate: Optional[int] = None) -> Transaction:
        """
        Pay the fee and fold the leftover capacity into output ``index``.

        The output's capacity above its occupied capacity is available for the
        fee, so it may shrink; it never drops below its occupied capacity.

        Raises:
            IndexError: No output at ``index``
            ValueError: The output holds less than its occupied capacity
        """
        tx = tx.clone()
        output = tx.outputs[index]
        occupied = output.occupied_capacity(tx.outputs_data[index])
        if output.capacity < occupied:
            raise ValueError(
                f"Output {index} holds {output.capacity} shannons, occupies {occupied}"
            )
        # spare capacity becomes leftover; the change function returns it
        tx.outputs[index] = output.model_copy(update={"capacity": occupied})

        def change(changed: Transaction, capacity: int) -> int:
            current = changed.outputs[index]
            changed.outputs[index] = current.model_copy(update={"capacity": current.capacity + capacity})
            return 0

        return await cls.complete_fee_by(tx, payer, change, fee_rate)


__all__ = ["ChangeFunction", "TransactionBalancer"]
