"""MultiRewards Toolkit - Python SDK for funding Hedera MultiRewards campaigns."""

__version__ = "1.0.0"

from .addresses.translator import AddressTranslator
from .campaigns.orchestrator import CampaignFundingOrchestrator
from .rewards.dispatcher import RewardFundingDispatcher
from .rewards.window import RewardWindowController
from .tokens.permissions import TokenPermissionManager

__all__ = [
    "AddressTranslator",
    "CampaignFundingOrchestrator",
    "RewardFundingDispatcher",
    "RewardWindowController",
    "TokenPermissionManager",
]
