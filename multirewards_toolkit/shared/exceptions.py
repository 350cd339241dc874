"""
Exception hierarchy for the MultiRewards toolkit.

Exception Categories:
- RetryableException: Failures that may succeed when the caller tries again
  later (mirror indexing lag, mirror transport errors)
- NonRetryableException: Failures that need a different input, credential or
  operator decision before trying again
- ConfigurationException: Startup/config errors that prevent operation

Campaign funding failures are categorized:
- AddressUnresolved, LookupFailed -> RetryableException
- InsufficientAuthority, SubmissionFailed, WindowActive,
  InsufficientAllowance -> NonRetryableException

None of these are retried inside the toolkit; the category only tells the
operator (or the CLI's retry wrapper) what is worth re-running.
"""

from typing import Optional


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - Mirror node not having indexed a new contract yet
    - Mirror node timeouts or 5xx responses
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Credential/permission mismatches
    - Contract preconditions that need operator judgment
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - Invalid configuration values
    - Missing required resources
    """

    pass


class AddressUnresolved(RetryableException):
    """
    An EVM address has no native id on the mirror node (yet).

    Freshly created contracts appear on the mirror node after an indexing
    delay, so re-running later may succeed.
    """

    def __init__(self, evm_address: str):
        super().__init__(
            f"No native id found for {evm_address} (not indexed yet?)"
        )
        self.evm_address = evm_address


class LookupFailed(RetryableException):
    """Mirror node transport or service error."""

    def __init__(
        self,
        subject: str,
        reason: str,
        status_code: Optional[int] = None,
    ):
        detail = f"HTTP {status_code}: {reason}" if status_code else reason
        super().__init__(f"Lookup of {subject} failed ({detail})")
        self.subject = subject
        self.reason = reason
        self.status_code = status_code


class InsufficientAuthority(NonRetryableException):
    """The signing credential cannot act for the requested owner."""

    def __init__(self, owner_id: str, signer_id: str, reason: str = ""):
        message = f"Credential for {signer_id} cannot sign for {owner_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.owner_id = owner_id
        self.signer_id = signer_id


class SubmissionFailed(NonRetryableException):
    """
    The ledger rejected a transaction, or it could not be submitted.

    ``status`` holds the ledger status code (e.g. CONTRACT_REVERT_EXECUTED)
    and should be inspected before deciding to resubmit.
    """

    def __init__(
        self,
        status: str,
        contract_id: str,
        method: str,
        reason: str = "",
        transaction_hash: Optional[str] = None,
    ):
        message = f"{method} on {contract_id} failed with {status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status = status
        self.contract_id = contract_id
        self.method = method
        self.reason = reason
        self.transaction_hash = transaction_hash


class WindowActive(NonRetryableException):
    """A reward period is still running for this campaign and token."""

    def __init__(self, campaign_id: str, token_id: str, period_finish: int):
        super().__init__(
            f"Reward window for {token_id} on {campaign_id} is active "
            f"until {period_finish}"
        )
        self.campaign_id = campaign_id
        self.token_id = token_id
        self.period_finish = period_finish


class InsufficientAllowance(NonRetryableException):
    """The campaign may not pull the requested amount from the funder."""

    def __init__(
        self,
        campaign_id: str,
        token_id: str,
        required: int,
        available: Optional[int] = None,
        reason: str = "",
    ):
        message = (
            f"Allowance for {campaign_id} on {token_id} does not cover "
            f"{required}"
        )
        if available is not None:
            message = f"{message} (available: {available})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.campaign_id = campaign_id
        self.token_id = token_id
        self.required = required
        self.available = available
