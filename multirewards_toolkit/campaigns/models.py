"""
Type definitions for MultiRewards campaigns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from multirewards_toolkit.shared.services.ledger_service import LedgerReceipt
from multirewards_toolkit.shared.types import NativeId

# =============================================================================
# ENUMS
# =============================================================================


class FundingState(Enum):
    """States of one campaign funding run."""

    INIT = "Init"
    ADDRESS_RESOLVED = "AddressResolved"
    APPROVED = "Approved"
    DURATION_SET = "DurationSet"
    FUNDED = "Funded"
    DONE = "Done"
    FAILED = "Failed"


class FundingStage(Enum):
    """Stages a funding run can fail in, named for manual resumption."""

    ADDRESS_RESOLUTION = "AddressResolution"
    APPROVAL = "Approval"
    DURATION_SETTING = "DurationSetting"
    FUNDING = "Funding"


# =============================================================================
# DATACLASSES
# =============================================================================


@dataclass(frozen=True)
class RewardWindow:
    """
    Reward state of one token on a campaign, read from ``rewardData``.

    ``start_timestamp`` is None until the window has been funded once.
    """

    token_id: NativeId
    distributor: str
    duration_seconds: int
    period_finish: int
    reward_rate: int
    last_update_time: int
    active: bool

    @property
    def start_timestamp(self) -> Optional[int]:
        if not self.period_finish:
            return None
        return self.period_finish - self.duration_seconds

    @property
    def total_amount(self) -> int:
        """Amount released over the window, up to rounding in the rate."""
        return self.reward_rate * self.duration_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_id": str(self.token_id),
            "distributor": self.distributor,
            "duration_seconds": self.duration_seconds,
            "period_finish": self.period_finish,
            "start_timestamp": self.start_timestamp,
            "reward_rate": self.reward_rate,
            "total_amount": self.total_amount,
            "active": self.active,
        }


@dataclass(frozen=True)
class ApprovalReceipt:
    """A confirmed allowance of ``amount`` from owner to spender."""

    owner_id: NativeId
    spender_id: NativeId
    token_id: NativeId
    amount: int
    receipt: LedgerReceipt

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner_id": str(self.owner_id),
            "spender_id": str(self.spender_id),
            "token_id": str(self.token_id),
            "amount": self.amount,
            "receipt": self.receipt.to_dict(),
        }


@dataclass(frozen=True)
class FundingReceipt:
    """A confirmed ``notifyRewardAmount``; the window starts at ``start_timestamp``."""

    campaign_id: NativeId
    token_id: NativeId
    amount: int
    start_timestamp: int
    receipt: LedgerReceipt

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": str(self.campaign_id),
            "token_id": str(self.token_id),
            "amount": self.amount,
            "start_timestamp": self.start_timestamp,
            "receipt": self.receipt.to_dict(),
        }


@dataclass
class FundingDetails:
    """What a completed funding run reports back."""

    campaign_id: NativeId
    reward_token_id: NativeId
    amount: int
    duration_seconds: int
    start_timestamp: int
    approval: ApprovalReceipt
    funding: FundingReceipt
    duration_receipt: Optional[LedgerReceipt] = None
    states: List[FundingState] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": str(self.campaign_id),
            "reward_token_id": str(self.reward_token_id),
            "amount": self.amount,
            "duration_seconds": self.duration_seconds,
            "start_timestamp": self.start_timestamp,
            "approval": self.approval.to_dict(),
            "duration": (
                self.duration_receipt.to_dict()
                if self.duration_receipt
                else None
            ),
            "funding": self.funding.to_dict(),
            "states": [state.value for state in self.states],
        }
