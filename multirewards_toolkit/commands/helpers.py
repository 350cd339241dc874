"""Wiring shared by the CLI subcommands."""

from typing import Optional

from multirewards_toolkit.addresses.translator import AddressTranslator
from multirewards_toolkit.commands.validation import (
    is_native_id,
    validate_evm_address,
)
from multirewards_toolkit.shared.constants import OperatorConstants
from multirewards_toolkit.shared.exceptions import ConfigurationException
from multirewards_toolkit.shared.retry import MIRROR_RETRY_CONFIG, RetryConfig
from multirewards_toolkit.shared.services.ledger_service import (
    Web3LedgerService,
)
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential

_mirror: Optional[MirrorNodeService] = None
_ledger: Optional[Web3LedgerService] = None


def get_mirror() -> MirrorNodeService:
    global _mirror
    if _mirror is None:
        _mirror = MirrorNodeService()
    return _mirror


def get_ledger() -> Web3LedgerService:
    global _ledger
    if _ledger is None:
        _ledger = Web3LedgerService(mirror=get_mirror())
    return _ledger


def load_operator_credential() -> SigningCredential:
    """Build the signing credential from OPERATOR_ID / OPERATOR_KEY."""
    operator_id = OperatorConstants.get_operator_id()
    try:
        account_id = NativeId.parse(operator_id)
    except ValueError:
        raise ConfigurationException(
            f"OPERATOR_ID must be a shard.realm.num id, got '{operator_id}'"
        )
    return SigningCredential(
        account_id=account_id,
        private_key=OperatorConstants.get_operator_key(),
    )


def wait_for_native_id(
    translator: AddressTranslator, address: str, attempts: int
) -> NativeId:
    """Resolve an EVM address, retrying while the mirror catches up."""
    evm_address = validate_evm_address(address)
    if attempts <= 1:
        return translator.require_native_id(evm_address)
    config = RetryConfig(
        max_attempts=attempts,
        base_delay=MIRROR_RETRY_CONFIG.base_delay,
        max_delay=MIRROR_RETRY_CONFIG.max_delay,
    )
    return config.run(translator.require_native_id, evm_address)


def parse_target(
    translator: AddressTranslator, value: str, attempts: int = 1
) -> NativeId:
    """Accept either a native id or an EVM address for a contract/token."""
    if is_native_id(value):
        return NativeId.parse(value)
    return wait_for_native_id(translator, value, attempts)
