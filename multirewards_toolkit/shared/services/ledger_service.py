"""
Ledger service module for submitting contract calls.

``LedgerService`` is the seam every funding component talks to: a blocking
``submit`` that returns only once the transaction is confirmed, and a
read-only ``call``. ``Web3LedgerService`` implements it on top of web3.py
against the Hedera JSON-RPC relay; tests substitute in-memory fakes.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.shared.constants import NetworkConstants
from multirewards_toolkit.shared.exceptions import (
    InsufficientAuthority,
    LookupFailed,
    SubmissionFailed,
)
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.services.resource_manager import (
    resource_manager,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential

logger = get_logger(__name__)

SUCCESS_STATUS = "SUCCESS"
REVERT_STATUS = "CONTRACT_REVERT_EXECUTED"
TRANSPORT_STATUS = "TRANSPORT_ERROR"
QUERY_STATUS = "QUERY_FAILED"

CONTRACT_ABIS = ("MultiRewards", "HederaToken")

_STATUS_PATTERN = re.compile(r"\b([A-Z]+(?:_[A-Z]+)+)\b")


@dataclass(frozen=True)
class LedgerReceipt:
    """A confirmed transaction."""

    transaction_hash: str
    contract_id: NativeId
    method: str
    status: str
    block_number: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_hash": self.transaction_hash,
            "contract_id": str(self.contract_id),
            "method": self.method,
            "status": self.status,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
        }


class LedgerService(ABC):
    """Opaque contract-call interface used by every funding component."""

    @abstractmethod
    def submit(
        self,
        contract_id: NativeId,
        method_name: str,
        args: Sequence[Any],
        credential: SigningCredential,
    ) -> LedgerReceipt:
        """
        Sign, submit and wait for the receipt of one contract call.

        Raises:
            SubmissionFailed: the ledger rejected or never accepted the call.
            InsufficientAuthority: the credential cannot sign at all.
        """

    @abstractmethod
    def call(
        self, contract_id: NativeId, method_name: str, args: Sequence[Any]
    ) -> Any:
        """Read-only contract call. Raises SubmissionFailed on failure."""


class Web3LedgerService(LedgerService):
    """
    LedgerService over web3.py and the Hedera JSON-RPC relay.

    Contracts are addressed by the long-zero form of their native id. Every
    write is pre-flighted with ``eth_call`` so reverts surface before any
    gas is spent.
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        chain_id: Optional[int] = None,
        mirror: Optional[MirrorNodeService] = None,
        gas_limit: Optional[int] = None,
        receipt_timeout: Optional[float] = None,
        w3: Optional[Web3] = None,
    ):
        """
        Initialize the Web3LedgerService.

        Args:
            rpc_url: JSON-RPC relay URL (defaults to the MR_NETWORK relay).
            chain_id: EVM chain id (defaults to the MR_NETWORK chain id).
            mirror: Used to read the ledger status of failed transactions.
            gas_limit: Gas attached to every transaction.
            receipt_timeout: Seconds to wait for a receipt.
            w3: Pre-built Web3 instance, mainly for tests.
        """
        self.chain_id = chain_id or NetworkConstants.get_chain_id()
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url or NetworkConstants.get_rpc_url())
        )
        self.mirror = mirror
        self.gas_limit = gas_limit or NetworkConstants.get_gas_limit()
        self.receipt_timeout = (
            receipt_timeout or NetworkConstants.get_receipt_timeout()
        )
        self._abi: List[Dict[str, Any]] = []
        for name in CONTRACT_ABIS:
            self._abi.extend(resource_manager.load_abi(name))
        self._contract_cache: Dict[NativeId, Any] = {}

    def _contract(self, contract_id: NativeId) -> Any:
        if contract_id not in self._contract_cache:
            self._contract_cache[contract_id] = self.w3.eth.contract(
                address=native_to_evm(contract_id).checksum, abi=self._abi
            )
        return self._contract_cache[contract_id]

    def _function(
        self, contract_id: NativeId, method_name: str, args: Sequence[Any]
    ) -> Any:
        return self._contract(contract_id).functions[method_name](*args)

    def call(
        self, contract_id: NativeId, method_name: str, args: Sequence[Any]
    ) -> Any:
        try:
            return self._function(contract_id, method_name, args).call()
        except ContractLogicError as e:
            raise SubmissionFailed(
                REVERT_STATUS, str(contract_id), method_name, _reason(e)
            ) from e
        except (Web3Exception, OSError) as e:
            raise SubmissionFailed(
                QUERY_STATUS, str(contract_id), method_name, str(e)
            ) from e

    def submit(
        self,
        contract_id: NativeId,
        method_name: str,
        args: Sequence[Any],
        credential: SigningCredential,
    ) -> LedgerReceipt:
        try:
            account = self.w3.eth.account.from_key(credential.private_key)
        except ValueError as e:
            signer = str(credential.account_id)
            raise InsufficientAuthority(
                signer, signer, "private key is not a valid ECDSA key"
            ) from e

        function = self._function(contract_id, method_name, args)
        sender = account.address

        try:
            function.call({"from": sender})
            tx = function.build_transaction(
                {
                    "from": sender,
                    "chainId": self.chain_id,
                    "gas": self.gas_limit,
                    "gasPrice": self.w3.eth.gas_price,
                    "nonce": self.w3.eth.get_transaction_count(sender),
                }
            )
            signed = account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            tx_hash_hex = Web3.to_hex(tx_hash)
            logger.info(
                f"Submitted {method_name} on {contract_id}: {tx_hash_hex}"
            )
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except ContractLogicError as e:
            raise SubmissionFailed(
                REVERT_STATUS, str(contract_id), method_name, _reason(e)
            ) from e
        except (Web3Exception, OSError) as e:
            raise SubmissionFailed(
                _status_from_message(str(e), TRANSPORT_STATUS),
                str(contract_id),
                method_name,
                str(e),
            ) from e

        if receipt["status"] != 1:
            status, reason = self._failure_status(tx_hash_hex)
            raise SubmissionFailed(
                status,
                str(contract_id),
                method_name,
                reason,
                transaction_hash=tx_hash_hex,
            )

        block = self.w3.eth.get_block(receipt["blockNumber"])
        logger.info(
            f"Confirmed {method_name} on {contract_id} in block "
            f"{receipt['blockNumber']}"
        )
        return LedgerReceipt(
            transaction_hash=tx_hash_hex,
            contract_id=contract_id,
            method=method_name,
            status=SUCCESS_STATUS,
            block_number=receipt["blockNumber"],
            timestamp=int(block["timestamp"]),
        )

    def _failure_status(self, transaction_hash: str) -> Tuple[str, str]:
        """Ledger status and message of a failed transaction, from the mirror."""
        if self.mirror is None:
            return REVERT_STATUS, ""
        try:
            result = self.mirror.get_contract_result(transaction_hash)
        except LookupFailed as e:
            logger.warning(
                f"Could not read status of {transaction_hash} from mirror: {e}"
            )
            return REVERT_STATUS, ""
        if not result:
            return REVERT_STATUS, ""
        return (
            result.get("result") or REVERT_STATUS,
            result.get("error_message") or "",
        )


def _reason(error: ContractLogicError) -> str:
    return getattr(error, "message", None) or str(error)


def _status_from_message(message: str, default: str) -> str:
    """Pick a ledger status code such as INVALID_SIGNATURE out of an error message."""
    match = _STATUS_PATTERN.search(message)
    return match.group(1) if match else default
