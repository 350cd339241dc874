"""
Unit tests for CampaignFundingOrchestrator.

These drive a whole funding run against the in-memory ledger and the
MockTransport mirror from conftest.
"""

import pytest

from conftest import CAMPAIGN_EVM, CAMPAIGN_ID, OPERATOR_ID, TOKEN_EVM, TOKEN_ID
from multirewards_toolkit.campaigns.models import FundingState
from multirewards_toolkit.campaigns.orchestrator import (
    CampaignFundingOrchestrator,
)
from multirewards_toolkit.shared.exceptions import (
    AddressUnresolved,
    InsufficientAllowance,
    InsufficientAuthority,
    LookupFailed,
    SubmissionFailed,
    WindowActive,
)
from multirewards_toolkit.shared.results import ErrorSeverity
from multirewards_toolkit.shared.types import NativeId, SigningCredential

AMOUNT = 1000
DURATION = 604800


@pytest.fixture
def orchestrator(ledger, indexed_mirror):
    return CampaignFundingOrchestrator(
        ledger, indexed_mirror, clock=ledger.clock
    )


class TestSuccessfulRun:
    """Tests for a run that reaches Done."""

    def test_full_run(self, orchestrator, ledger, credential):
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.success is True
        details = result.data
        assert details.campaign_id == CAMPAIGN_ID
        assert details.reward_token_id == TOKEN_ID
        assert details.amount == AMOUNT
        assert details.duration_seconds == DURATION
        assert details.approval.amount == AMOUNT
        assert details.approval.owner_id == OPERATOR_ID
        assert details.funding.amount == details.approval.amount

    def test_state_order(self, orchestrator, credential):
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )
        assert result.data.states == [
            FundingState.INIT,
            FundingState.ADDRESS_RESOLVED,
            FundingState.APPROVED,
            FundingState.DURATION_SET,
            FundingState.FUNDED,
            FundingState.DONE,
        ]

    def test_submission_order(self, orchestrator, ledger, credential):
        orchestrator.run(CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential)
        assert ledger.methods() == [
            "approve",
            "setRewardsDuration",
            "notifyRewardAmount",
        ]
        contracts = [contract for contract, _, _ in ledger.submissions]
        assert contracts == [TOKEN_ID, CAMPAIGN_ID, CAMPAIGN_ID]

    def test_window_starts_at_funding_confirmation(
        self, orchestrator, ledger, credential
    ):
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )
        details = result.data
        window = orchestrator.windows.get_window(CAMPAIGN_ID, TOKEN_ID)

        assert details.start_timestamp == details.funding.receipt.timestamp
        assert window.start_timestamp == details.start_timestamp
        assert window.period_finish == details.start_timestamp + DURATION
        assert window.active is True

    def test_allowance_is_consumed(self, orchestrator, credential):
        orchestrator.run(CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential)
        assert (
            orchestrator.permissions.allowance(OPERATOR_ID, CAMPAIGN_ID, TOKEN_ID)
            == 0
        )

    def test_to_dict(self, orchestrator, credential):
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )
        data = result.data.to_dict()
        assert data["campaign_id"] == "0.0.1234"
        assert data["reward_token_id"] == "0.0.5678"
        assert data["states"][-1] == "Done"


class TestFailedRun:
    """Tests for runs that stop at a stage."""

    def test_unindexed_campaign(self, ledger, mirror, credential):
        """Test a 404 from the mirror stops before anything is submitted."""
        orchestrator = CampaignFundingOrchestrator(
            ledger, mirror, clock=ledger.clock
        )
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.success is False
        assert result.stage == "AddressResolution"
        assert isinstance(result.cause, AddressUnresolved)
        assert result.failure.severity == ErrorSeverity.CRITICAL
        assert result.failure.context["states"] == ["Init", "Failed"]
        assert ledger.submissions == []

    def test_mirror_outage(self, ledger, mirror, mirror_routes, credential):
        mirror_routes.add(f"/contracts/{CAMPAIGN_EVM}", status_code=500)
        orchestrator = CampaignFundingOrchestrator(ledger, mirror)

        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )
        assert result.stage == "AddressResolution"
        assert isinstance(result.cause, LookupFailed)

    def test_malformed_mirror_body(
        self, ledger, mirror, mirror_routes, credential
    ):
        """Test a garbled contract_id fails the run instead of raising."""
        mirror_routes.add(
            f"/contracts/{CAMPAIGN_EVM}", json={"contract_id": "0xdeadbeef"}
        )
        orchestrator = CampaignFundingOrchestrator(ledger, mirror)

        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.success is False
        assert result.stage == "AddressResolution"
        assert isinstance(result.cause, LookupFailed)
        assert ledger.submissions == []

    def test_approval_failure_stops_run(
        self, orchestrator, ledger, credential
    ):
        ledger.fail_on(
            "approve",
            SubmissionFailed(
                "INSUFFICIENT_TOKEN_BALANCE", str(TOKEN_ID), "approve"
            ),
        )
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.stage == "Approval"
        assert result.cause.status == "INSUFFICIENT_TOKEN_BALANCE"
        assert result.failure.context["campaign_id"] == "0.0.1234"
        assert result.failure.context["states"] == [
            "Init",
            "AddressResolved",
            "Failed",
        ]
        assert ledger.submissions == []

    def test_owner_is_signer(self, orchestrator, ledger):
        other = SigningCredential(NativeId(0, 0, 7), "0x" + "22" * 32)
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, other
        )
        assert result.success is True
        assert result.data.approval.owner_id == NativeId(0, 0, 7)

    def test_signature_rejected(self, orchestrator, ledger, credential):
        ledger.fail_on(
            "approve",
            SubmissionFailed("INVALID_SIGNATURE", str(TOKEN_ID), "approve"),
        )
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )
        assert result.stage == "Approval"
        assert isinstance(result.cause, InsufficientAuthority)

    def test_active_window_fails(self, orchestrator, ledger, credential):
        ledger.add_window(
            CAMPAIGN_ID, TOKEN_ID, duration=100, period_finish=ledger.now + 60
        )
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.stage == "DurationSetting"
        assert isinstance(result.cause, WindowActive)
        assert ledger.methods() == ["approve"]
        assert result.failure.context["approval_tx"].startswith("0x")

    def test_active_window_allowed(self, orchestrator, ledger, credential):
        """Test resuming a run keeps the running window's duration."""
        ledger.add_window(
            CAMPAIGN_ID, TOKEN_ID, duration=100, period_finish=ledger.now + 60
        )
        result = orchestrator.run(
            CAMPAIGN_EVM,
            TOKEN_EVM,
            AMOUNT,
            DURATION,
            credential,
            allow_active_window=True,
        )

        assert result.success is True
        assert result.has_warnings() is True
        assert result.data.duration_receipt is None
        assert ledger.methods() == ["approve", "notifyRewardAmount"]

    def test_allowance_shortfall(self, orchestrator, ledger, credential):
        """Test funding refuses when the ledger reports a lower allowance."""
        ledger.allowance_override = AMOUNT - 1
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.stage == "Funding"
        assert isinstance(result.cause, InsufficientAllowance)
        assert result.cause.available == AMOUNT - 1
        assert ledger.methods() == ["approve", "setRewardsDuration"]

    def test_funding_revert(self, orchestrator, ledger, credential):
        ledger.fail_on(
            "notifyRewardAmount",
            SubmissionFailed(
                "CONTRACT_REVERT_EXECUTED",
                str(CAMPAIGN_ID),
                "notifyRewardAmount",
                "Caller is not reward distributor",
            ),
        )
        result = orchestrator.run(
            CAMPAIGN_EVM, TOKEN_EVM, AMOUNT, DURATION, credential
        )

        assert result.stage == "Funding"
        assert result.failure.context["states"] == [
            "Init",
            "AddressResolved",
            "Approved",
            "DurationSet",
            "Failed",
        ]


class TestInvalidInput:
    """Tests for inputs rejected before the run starts."""

    @pytest.mark.parametrize(
        "amount,duration", [(0, DURATION), (-5, DURATION), (AMOUNT, 0)]
    )
    def test_non_positive_values(
        self, orchestrator, ledger, mirror_routes, credential, amount, duration
    ):
        with pytest.raises(ValueError):
            orchestrator.run(
                CAMPAIGN_EVM, TOKEN_EVM, amount, duration, credential
            )
        assert mirror_routes.requests == []
        assert ledger.submissions == []

    def test_malformed_address(self, orchestrator, credential):
        with pytest.raises(ValueError):
            orchestrator.run("0x123", TOKEN_EVM, AMOUNT, DURATION, credential)
