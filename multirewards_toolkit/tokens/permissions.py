"""Token association and spending allowances for HTS tokens."""

from typing import Optional

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.campaigns.models import ApprovalReceipt
from multirewards_toolkit.shared.exceptions import (
    InsufficientAuthority,
    SubmissionFailed,
)
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.ledger_service import (
    LedgerReceipt,
    LedgerService,
)
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential

logger = get_logger(__name__)

# Ledger statuses that mean "this key cannot sign for this account"
AUTHORITY_STATUSES = frozenset(
    {
        "INVALID_SIGNATURE",
        "INVALID_PAYER_SIGNATURE",
        "INVALID_ALLOWANCE_OWNER_ID",
        "PAYER_ACCOUNT_NOT_FOUND",
    }
)


class TokenPermissionManager:
    """Grants and inspects token allowances through the token's ERC-20 facade."""

    def __init__(
        self,
        ledger: LedgerService,
        mirror: Optional[MirrorNodeService] = None,
    ):
        self.ledger = ledger
        self.mirror = mirror

    def approve(
        self,
        owner_id: NativeId,
        owner_credential: SigningCredential,
        spender_id: NativeId,
        token_id: NativeId,
        amount: int,
    ) -> ApprovalReceipt:
        """
        Set the allowance of ``spender_id`` over ``owner_id``'s tokens.

        The allowance is replaced, not increased, so approving the same
        amount twice leaves exactly that amount. An amount of 0 revokes.

        Raises:
            ValueError: negative amount.
            InsufficientAuthority: credential does not belong to owner_id,
                or the ledger rejected its signature.
            SubmissionFailed: any other ledger rejection.
        """
        if amount < 0:
            raise ValueError(f"Allowance amount must be >= 0, got {amount}")
        _check_authority(owner_id, owner_credential)

        spender = native_to_evm(spender_id)
        try:
            receipt = self.ledger.submit(
                token_id,
                "approve",
                [spender.checksum, amount],
                owner_credential,
            )
        except SubmissionFailed as e:
            if e.status in AUTHORITY_STATUSES:
                raise InsufficientAuthority(
                    str(owner_id), str(owner_credential.account_id), e.status
                ) from e
            raise

        logger.info(
            f"Approved {spender_id} to spend {amount} of {token_id} "
            f"for {owner_id}"
        )
        return ApprovalReceipt(
            owner_id=owner_id,
            spender_id=spender_id,
            token_id=token_id,
            amount=amount,
            receipt=receipt,
        )

    def allowance(
        self, owner_id: NativeId, spender_id: NativeId, token_id: NativeId
    ) -> int:
        """Current allowance, read from the ledger (not the lagging mirror)."""
        value = self.ledger.call(
            token_id,
            "allowance",
            [native_to_evm(owner_id).checksum, native_to_evm(spender_id).checksum],
        )
        return int(value)

    def is_associated(self, account_id: NativeId, token_id: NativeId) -> bool:
        if self.mirror is None:
            return False
        relationships = self.mirror.get_token_relationships(
            str(account_id), str(token_id)
        )
        return any(r.get("token_id") == str(token_id) for r in relationships)

    def associate(
        self,
        account_id: NativeId,
        credential: SigningCredential,
        token_id: NativeId,
    ) -> Optional[LedgerReceipt]:
        """
        Associate ``token_id`` with ``account_id`` so it can hold the token.

        Returns None when the mirror already reports the association.
        """
        _check_authority(account_id, credential)

        if self.is_associated(account_id, token_id):
            logger.info(f"{account_id} is already associated with {token_id}")
            return None

        try:
            receipt = self.ledger.submit(token_id, "associate", [], credential)
        except SubmissionFailed as e:
            if e.status in AUTHORITY_STATUSES:
                raise InsufficientAuthority(
                    str(account_id), str(credential.account_id), e.status
                ) from e
            raise

        logger.info(f"Associated {token_id} with {account_id}")
        return receipt


def _check_authority(owner_id: NativeId, credential: SigningCredential) -> None:
    if credential.account_id != owner_id:
        raise InsufficientAuthority(
            str(owner_id),
            str(credential.account_id),
            "credential belongs to a different account",
        )
