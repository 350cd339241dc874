"""Campaign funding module for the MultiRewards toolkit."""

from .models import (
    ApprovalReceipt,
    FundingDetails,
    FundingReceipt,
    FundingStage,
    FundingState,
    RewardWindow,
)

__all__ = [
    "ApprovalReceipt",
    "FundingDetails",
    "FundingReceipt",
    "FundingStage",
    "FundingState",
    "RewardWindow",
]
