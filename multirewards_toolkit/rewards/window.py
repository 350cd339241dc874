"""
Reward window reads and duration changes on a MultiRewards campaign.

``setRewardsDuration`` replaces the duration of a token's window and the
contract only accepts it once the previous period has finished. The
controller checks that itself first, so an active window is reported as
WindowActive without submitting anything.
"""

import time
from typing import Callable, Optional

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.campaigns.models import RewardWindow
from multirewards_toolkit.shared.exceptions import WindowActive
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.ledger_service import (
    LedgerReceipt,
    LedgerService,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential

logger = get_logger(__name__)


class RewardWindowController:
    def __init__(
        self,
        ledger: LedgerService,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ledger = ledger
        self.clock = clock or time.time

    def get_window(
        self, campaign_id: NativeId, token_id: NativeId
    ) -> RewardWindow:
        """Read ``rewardData(token)`` and derive the window state."""
        (
            distributor,
            duration,
            period_finish,
            reward_rate,
            last_update_time,
            _reward_per_token_stored,
        ) = self.ledger.call(
            campaign_id, "rewardData", [native_to_evm(token_id).checksum]
        )
        return RewardWindow(
            token_id=token_id,
            distributor=str(distributor),
            duration_seconds=int(duration),
            period_finish=int(period_finish),
            reward_rate=int(reward_rate),
            last_update_time=int(last_update_time),
            active=int(self.clock()) <= int(period_finish),
        )

    def set_duration(
        self,
        campaign_id: NativeId,
        token_id: NativeId,
        duration_seconds: int,
        credential: SigningCredential,
    ) -> LedgerReceipt:
        """
        Set the reward duration of ``token_id`` on ``campaign_id``.

        Raises:
            ValueError: duration_seconds is not positive.
            WindowActive: a reward period is running (nothing submitted).
            SubmissionFailed: the ledger rejected the transaction.
        """
        if duration_seconds <= 0:
            raise ValueError(
                f"Reward duration must be > 0 seconds, got {duration_seconds}"
            )

        window = self.get_window(campaign_id, token_id)
        if window.active:
            logger.error(
                f"Refusing to set duration on {campaign_id}: window for "
                f"{token_id} runs until {window.period_finish}"
            )
            raise WindowActive(
                str(campaign_id), str(token_id), window.period_finish
            )

        receipt = self.ledger.submit(
            campaign_id,
            "setRewardsDuration",
            [native_to_evm(token_id).checksum, duration_seconds],
            credential,
        )
        logger.info(
            f"Set reward duration of {token_id} on {campaign_id} "
            f"to {duration_seconds}s"
        )
        return receipt

    def add_reward(
        self,
        campaign_id: NativeId,
        token_id: NativeId,
        distributor_id: NativeId,
        duration_seconds: int,
        credential: SigningCredential,
    ) -> LedgerReceipt:
        """Register ``token_id`` as a reward token (campaign owner only)."""
        if duration_seconds <= 0:
            raise ValueError(
                f"Reward duration must be > 0 seconds, got {duration_seconds}"
            )

        receipt = self.ledger.submit(
            campaign_id,
            "addReward",
            [
                native_to_evm(token_id).checksum,
                native_to_evm(distributor_id).checksum,
                duration_seconds,
            ],
            credential,
        )
        logger.info(
            f"Enabled reward {token_id} on {campaign_id} "
            f"(distributor {distributor_id}, {duration_seconds}s)"
        )
        return receipt
