"""
Campaign funding orchestration.

One run takes a campaign and a reward token by EVM address and walks:

    Init -> AddressResolved -> Approved -> DurationSet -> Funded -> Done

Each step waits for the ledger to confirm the previous one. The first
failure ends the run as ``Failed(stage, cause)``: the returned Result names
the stage, carries the raw exception, and holds the resolved parameters so
the operator can re-run that stage by hand (see the CLI subcommands).
Nothing is rolled back and nothing is retried here.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from multirewards_toolkit.addresses.translator import (
    AddressTranslator,
    as_evm_address,
)
from multirewards_toolkit.campaigns.models import (
    FundingDetails,
    FundingStage,
    FundingState,
)
from multirewards_toolkit.rewards.dispatcher import RewardFundingDispatcher
from multirewards_toolkit.rewards.window import RewardWindowController
from multirewards_toolkit.shared.exceptions import (
    InsufficientAllowance,
    NonRetryableException,
    RetryableException,
    WindowActive,
)
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.results import ErrorSeverity, Result
from multirewards_toolkit.shared.services.ledger_service import LedgerService
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.types import EvmAddress, SigningCredential
from multirewards_toolkit.tokens.permissions import TokenPermissionManager

logger = get_logger(__name__)


class _FundingRun:
    """Per-run bookkeeping: visited states and resumption context."""

    def __init__(self, context: Dict[str, Any]):
        self.states: List[FundingState] = [FundingState.INIT]
        self.context = context

    def advance(self, state: FundingState) -> None:
        logger.info(f"{self.states[-1].value} -> {state.value}")
        self.states.append(state)

    def fail(
        self, stage: FundingStage, cause: Exception
    ) -> Result[FundingDetails]:
        logger.error(f"Campaign funding failed at {stage.value}: {cause}")
        visited = [state.value for state in self.states]
        return Result.fail_with_message(
            source=stage.value,
            message=str(cause),
            severity=ErrorSeverity.CRITICAL,
            context={
                **self.context,
                "states": visited + [FundingState.FAILED.value],
            },
            exception=cause,
        )


class CampaignFundingOrchestrator:
    """
    Resolve, approve, set duration and fund a campaign's reward token.

    The orchestrator keeps no state between runs; a new AddressTranslator
    is created for every run. Two runs against the same campaign and token
    must not overlap, which is up to the caller.
    """

    def __init__(
        self,
        ledger: LedgerService,
        mirror: MirrorNodeService,
        shard: int = 0,
        realm: int = 0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ledger = ledger
        self.mirror = mirror
        self.shard = shard
        self.realm = realm
        self.permissions = TokenPermissionManager(ledger, mirror)
        self.windows = RewardWindowController(ledger, clock)
        self.dispatcher = RewardFundingDispatcher(ledger)

    def new_translator(self) -> AddressTranslator:
        return AddressTranslator(self.mirror, self.shard, self.realm)

    def run(
        self,
        campaign_address: Union[EvmAddress, str],
        reward_token_address: Union[EvmAddress, str],
        amount: int,
        duration_seconds: int,
        credential: SigningCredential,
        allow_active_window: bool = False,
    ) -> Result[FundingDetails]:
        """
        Fund one reward window of a campaign.

        Args:
            campaign_address: Campaign contract EVM address
            reward_token_address: Reward token EVM address
            amount: Reward amount in the token's smallest unit
            duration_seconds: Reward window length
            credential: Signer that owns the reward tokens
            allow_active_window: Skip the duration step if the window is
                already running (resuming a partial earlier run)

        Returns:
            Result with FundingDetails on success, or a single CRITICAL
            error whose source is the failed stage.

        Raises:
            ValueError: malformed addresses or non-positive amount/duration.
        """
        campaign_evm = as_evm_address(campaign_address)
        token_evm = as_evm_address(reward_token_address)
        if amount <= 0:
            raise ValueError(f"Reward amount must be > 0, got {amount}")
        if duration_seconds <= 0:
            raise ValueError(
                f"Reward duration must be > 0 seconds, got {duration_seconds}"
            )

        owner_id = credential.account_id
        run = _FundingRun(
            {
                "campaign_address": campaign_evm.value,
                "reward_token_address": token_evm.value,
                "amount": amount,
                "duration_seconds": duration_seconds,
                "owner_id": str(owner_id),
            }
        )
        warnings: List[str] = []

        # 1. Resolve native ids
        translator = self.new_translator()
        try:
            campaign_id = translator.require_native_id(campaign_evm)
            token_id = translator.require_native_id(token_evm)
        except (RetryableException, NonRetryableException) as e:
            return run.fail(FundingStage.ADDRESS_RESOLUTION, e)
        run.context["campaign_id"] = str(campaign_id)
        run.context["reward_token_id"] = str(token_id)
        run.advance(FundingState.ADDRESS_RESOLVED)

        # 2. Approve the campaign to pull the reward
        try:
            approval = self.permissions.approve(
                owner_id, credential, campaign_id, token_id, amount
            )
        except (RetryableException, NonRetryableException) as e:
            return run.fail(FundingStage.APPROVAL, e)
        run.context["approval_tx"] = approval.receipt.transaction_hash
        run.advance(FundingState.APPROVED)

        # 3. Set the reward duration
        duration_receipt = None
        try:
            duration_receipt = self.windows.set_duration(
                campaign_id, token_id, duration_seconds, credential
            )
        except WindowActive as e:
            if not allow_active_window:
                return run.fail(FundingStage.DURATION_SETTING, e)
            logger.warning(f"Skipping duration step: {e}")
            warnings.append(str(e))
        except (RetryableException, NonRetryableException) as e:
            return run.fail(FundingStage.DURATION_SETTING, e)
        run.advance(FundingState.DURATION_SET)

        # 4. Fund exactly what was approved
        funding_amount = approval.amount
        try:
            available = self.permissions.allowance(
                owner_id, campaign_id, token_id
            )
            if available < funding_amount:
                raise InsufficientAllowance(
                    str(campaign_id), str(token_id), funding_amount, available
                )
            funding = self.dispatcher.fund(
                campaign_id, token_id, funding_amount, credential
            )
        except (RetryableException, NonRetryableException) as e:
            return run.fail(FundingStage.FUNDING, e)
        run.advance(FundingState.FUNDED)

        # 5. Done
        run.advance(FundingState.DONE)
        result = Result.ok(
            FundingDetails(
                campaign_id=campaign_id,
                reward_token_id=token_id,
                amount=funding_amount,
                duration_seconds=duration_seconds,
                start_timestamp=funding.start_timestamp,
                approval=approval,
                funding=funding,
                duration_receipt=duration_receipt,
                states=list(run.states),
            )
        )
        for message in warnings:
            result.add_warning(
                FundingStage.DURATION_SETTING.value, message, dict(run.context)
            )
        return result
