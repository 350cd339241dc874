"""Sends reward funds into a campaign with ``notifyRewardAmount``."""

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.campaigns.models import FundingReceipt
from multirewards_toolkit.shared.exceptions import (
    InsufficientAllowance,
    SubmissionFailed,
)
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.ledger_service import LedgerService
from multirewards_toolkit.shared.types import NativeId, SigningCredential

logger = get_logger(__name__)

ALLOWANCE_STATUSES = frozenset(
    {
        "SPENDER_DOES_NOT_HAVE_ALLOWANCE",
        "AMOUNT_EXCEEDS_ALLOWANCE",
    }
)


class RewardFundingDispatcher:
    def __init__(self, ledger: LedgerService):
        self.ledger = ledger

    def fund(
        self,
        campaign_id: NativeId,
        token_id: NativeId,
        amount: int,
        credential: SigningCredential,
    ) -> FundingReceipt:
        """
        Pull ``amount`` of ``token_id`` from the signer into the campaign.

        The campaign must already hold an allowance of at least ``amount``.
        Confirmation starts the reward window at the block's timestamp.

        Raises:
            InsufficientAllowance: the ledger refused for allowance reasons.
            SubmissionFailed: any other rejection.
        """
        try:
            receipt = self.ledger.submit(
                campaign_id,
                "notifyRewardAmount",
                [native_to_evm(token_id).checksum, amount],
                credential,
            )
        except SubmissionFailed as e:
            if _is_allowance_failure(e):
                raise InsufficientAllowance(
                    str(campaign_id), str(token_id), amount, reason=e.message
                ) from e
            raise

        logger.info(
            f"Funded {campaign_id} with {amount} of {token_id}; window "
            f"starts at {receipt.timestamp}"
        )
        return FundingReceipt(
            campaign_id=campaign_id,
            token_id=token_id,
            amount=amount,
            start_timestamp=receipt.timestamp,
            receipt=receipt,
        )


def _is_allowance_failure(error: SubmissionFailed) -> bool:
    if error.status in ALLOWANCE_STATUSES:
        return True
    return "allowance" in error.reason.lower()
