"""Stake into a MultiRewards campaign from the signer's account."""

from typing import Optional, Tuple

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.campaigns.models import ApprovalReceipt
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.ledger_service import (
    LedgerReceipt,
    LedgerService,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential
from multirewards_toolkit.tokens.permissions import TokenPermissionManager

logger = get_logger(__name__)


class StakingService:
    """Approve the staking token for the campaign, then ``stake``."""

    def __init__(
        self,
        ledger: LedgerService,
        permissions: Optional[TokenPermissionManager] = None,
    ):
        self.ledger = ledger
        self.permissions = permissions or TokenPermissionManager(ledger)

    def staking_token(self, campaign_id: NativeId) -> str:
        return str(self.ledger.call(campaign_id, "stakingToken", []))

    def balance_of(self, token_id: NativeId, account_id: NativeId) -> int:
        return int(
            self.ledger.call(
                token_id, "balanceOf", [native_to_evm(account_id).checksum]
            )
        )

    def stake(
        self,
        campaign_id: NativeId,
        staking_token_id: NativeId,
        amount: int,
        credential: SigningCredential,
    ) -> Tuple[Optional[ApprovalReceipt], LedgerReceipt]:
        """
        Stake ``amount`` of the staking token.

        Approval is only submitted when the current allowance is short.
        """
        if amount <= 0:
            raise ValueError(f"Stake amount must be > 0, got {amount}")

        owner_id = credential.account_id
        approval = None
        current = self.permissions.allowance(
            owner_id, campaign_id, staking_token_id
        )
        if current < amount:
            approval = self.permissions.approve(
                owner_id, credential, campaign_id, staking_token_id, amount
            )

        receipt = self.ledger.submit(campaign_id, "stake", [amount], credential)
        logger.info(f"Staked {amount} of {staking_token_id} in {campaign_id}")
        return approval, receipt
