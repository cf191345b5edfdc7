"""Transaction confirmation polling for multichain-deployments library."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .exceptions import HorizonError, HorizonNotFoundError, RpcError, TransportError
from .horizon import HorizonClient, extract_contract_id
from .rpc import EVMRpcClient, SorobanRpcClient, parse_quantity
from .types import BackoffPolicy, PollResult, PollTick, TransactionOutcome

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Tick = Callable[[], Awaitable[PollTick]]

PENDING = PollTick(TransactionOutcome.PENDING)


class ConfirmationPoller:
    """
    Poll one transaction hash until it reaches a terminal state.

    Ticks run strictly one after another with an awaited sleep in between, so
    there is never more than one request in flight for a hash. Each
    unsuccessful tick grows the delay by the policy's multiplier up to its
    ceiling. Running out of attempts yields TIMED_OUT, never REVERTED.

    Errors reaching the node during a tick are logged and counted as an
    unsuccessful tick; the transaction has already been broadcast, so only
    an explicit on-chain failure may end polling early.
    """

    def __init__(self, policy: Optional[BackoffPolicy] = None, sleep: Sleep = asyncio.sleep):
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep

    async def poll(self, tx_hash: str, tick: Tick) -> PollResult:
        delay = self.policy.initial_delay

        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                result = await tick()
            except (TransportError, RpcError, HorizonError) as e:
                logger.warning(
                    "Error polling transaction",
                    extra={
                        "event": "poll.tick_failed",
                        "tx_hash": tx_hash,
                        "attempt": attempt,
                        "error": e.details or str(e),
                    },
                )
                result = PENDING

            if result.outcome is not TransactionOutcome.PENDING:
                logger.info(
                    "Transaction reached terminal state",
                    extra={
                        "event": "poll.terminal",
                        "tx_hash": tx_hash,
                        "outcome": result.outcome.value,
                        "attempts": attempt,
                    },
                )
                return PollResult(
                    outcome=result.outcome,
                    tx_hash=tx_hash,
                    attempts=attempt,
                    contract_address=result.contract_address,
                    block_number=result.block_number,
                    gas_used=result.gas_used,
                )

            logger.debug(
                "Transaction not final yet",
                extra={"event": "poll.pending", "tx_hash": tx_hash, "attempt": attempt, "delay": delay},
            )

            if attempt < self.policy.max_attempts:
                await self._sleep(delay)
                delay = self.policy.next_delay(delay)

        logger.error(
            "Transaction not confirmed after max attempts",
            extra={
                "event": "poll.timed_out",
                "tx_hash": tx_hash,
                "max_attempts": self.policy.max_attempts,
            },
        )
        return PollResult(
            outcome=TransactionOutcome.TIMED_OUT,
            tx_hash=tx_hash,
            attempts=self.policy.max_attempts,
        )


def evm_receipt_tick(rpc: EVMRpcClient, tx_hash: str) -> Tick:
    """
    Build a tick that reads an EVM transaction receipt.

    A null receipt means the transaction is not mined yet. status 1 is
    CONFIRMED, status 0 is REVERTED. A receipt without a status field
    (pre-Byzantium) counts as CONFIRMED only when it names a contract.
    """

    async def tick() -> PollTick:
        receipt = await rpc.get_transaction_receipt(tx_hash)
        if receipt is None:
            return PENDING

        status = parse_quantity(receipt.get("status"))
        contract_address = receipt.get("contractAddress")

        if status == 0:
            return PollTick(
                TransactionOutcome.REVERTED,
                block_number=parse_quantity(receipt.get("blockNumber")),
                gas_used=parse_quantity(receipt.get("gasUsed")),
            )
        if status == 1 or (status is None and contract_address):
            return PollTick(
                TransactionOutcome.CONFIRMED,
                contract_address=contract_address,
                block_number=parse_quantity(receipt.get("blockNumber")),
                gas_used=parse_quantity(receipt.get("gasUsed")),
            )
        return PENDING

    return tick


async def _contract_id_from_soroban_rpc(soroban: SorobanRpcClient, tx_hash: str) -> Optional[str]:
    try:
        result = await soroban.get_transaction(tx_hash)
    except (TransportError, RpcError) as e:
        logger.warning(
            "Soroban RPC lookup failed",
            extra={"event": "stellar.soroban_lookup_failed", "tx_hash": tx_hash, "error": e.details},
        )
        return None
    return extract_contract_id((result or {}).get("resultMetaXdr"))


def stellar_transaction_tick(
    horizon: HorizonClient, tx_hash: str, soroban: Optional[SorobanRpcClient] = None
) -> Tick:
    """
    Build a tick that reads a Stellar transaction from Horizon.

    404 means Horizon has not ingested it yet. successful == True is
    CONFIRMED (with the contract id taken from the Soroban return value,
    falling back to Soroban RPC when Horizon omits the meta); successful ==
    False is REVERTED.
    """

    async def tick() -> PollTick:
        try:
            transaction = await horizon.get_transaction_async(tx_hash)
        except HorizonNotFoundError:
            return PENDING

        successful = transaction.get("successful")
        ledger = transaction.get("ledger")

        if successful is True:
            contract_id = extract_contract_id(transaction.get("result_meta_xdr"))
            if contract_id is None and soroban is not None:
                contract_id = await _contract_id_from_soroban_rpc(soroban, tx_hash)
            return PollTick(
                TransactionOutcome.CONFIRMED,
                contract_address=contract_id,
                block_number=ledger,
            )
        if successful is False:
            return PollTick(TransactionOutcome.REVERTED, block_number=ledger)
        return PENDING

    return tick
