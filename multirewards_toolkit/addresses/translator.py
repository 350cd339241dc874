"""
Address translation between EVM addresses and native ids.

Long-zero addresses are decoded locally. Anything else (create2 contract
addresses, ECDSA alias accounts) goes to the mirror node, which may not have
indexed a freshly created contract yet. In that case the translator returns
``Unresolved`` instead of raising, and leaves retrying to the caller.
"""

from typing import Any, Dict, Optional, Union

from multirewards_toolkit.addresses.encoding import evm_to_native, native_to_evm
from multirewards_toolkit.shared.exceptions import (
    AddressUnresolved,
    LookupFailed,
)
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.types import (
    EvmAddress,
    NativeId,
    NativeIdResolution,
    Unresolved,
)

logger = get_logger(__name__)


def as_evm_address(address: Union[EvmAddress, str]) -> EvmAddress:
    return address if isinstance(address, EvmAddress) else EvmAddress(address)


class AddressTranslator:
    """
    Resolve native ids for EVM addresses and vice versa.

    Lookups are memoized for the lifetime of the instance, so one instance
    should cover a single run. Only successful lookups are memoized;
    ``Unresolved`` is asked again on the next call.

    Only long-zero addresses carrying this translator's ``shard`` and
    ``realm`` are decoded locally. A long-zero address of any other shard or
    realm is looked up on the mirror like a create2 address, so build the
    translator with the shard and realm of the network it talks to.
    """

    def __init__(
        self,
        mirror: MirrorNodeService,
        shard: int = 0,
        realm: int = 0,
    ):
        self.mirror = mirror
        self.shard = shard
        self.realm = realm
        self._contract_ids: Dict[EvmAddress, NativeId] = {}
        self._account_ids: Dict[EvmAddress, NativeId] = {}

    def resolve_evm_address(self, native_id: NativeId) -> EvmAddress:
        """Native id to EVM address; always local."""
        return native_to_evm(native_id)

    def resolve_native_id(
        self, evm_address: Union[EvmAddress, str]
    ) -> NativeIdResolution:
        """
        EVM address to native id via ``/contracts/{address}``.

        Returns:
            NativeId, or Unresolved when the mirror has no contract_id for it.

        Raises:
            LookupFailed: mirror transport/service error or a malformed
                body (not retried).
        """
        address = as_evm_address(evm_address)

        local = evm_to_native(address, self.shard, self.realm)
        if local is not None:
            return local

        if address in self._contract_ids:
            return self._contract_ids[address]

        body = self.mirror.get_contract(address.value)
        native_id = _parse_id_field(address, body, "contract_id")
        if native_id is None:
            logger.info(f"No contract_id on mirror yet for {address}")
            return Unresolved(address)

        self._contract_ids[address] = native_id
        logger.debug(f"Resolved {address} -> {native_id}")
        return native_id

    def resolve_account_id(
        self, evm_address: Union[EvmAddress, str]
    ) -> NativeIdResolution:
        """EVM alias of an account to its native id via ``/accounts/{address}``."""
        address = as_evm_address(evm_address)

        local = evm_to_native(address, self.shard, self.realm)
        if local is not None:
            return local

        if address in self._account_ids:
            return self._account_ids[address]

        body = self.mirror.get_account(address.value)
        native_id = _parse_id_field(address, body, "account")
        if native_id is None:
            logger.info(f"No account on mirror yet for {address}")
            return Unresolved(address)

        self._account_ids[address] = native_id
        return native_id

    def require_native_id(self, evm_address: Union[EvmAddress, str]) -> NativeId:
        """Like resolve_native_id, but raises AddressUnresolved."""
        resolved = self.resolve_native_id(evm_address)
        if isinstance(resolved, Unresolved):
            raise AddressUnresolved(resolved.evm_address.value)
        return resolved


def _parse_id_field(
    address: EvmAddress, body: Any, field: str
) -> Optional[NativeId]:
    """Native id under ``field`` of a mirror body; None when it is absent."""
    if not body:
        return None
    if not isinstance(body, dict):
        raise LookupFailed(
            address.value, f"unexpected mirror body: {type(body).__name__}"
        )
    value = body.get(field)
    if not value:
        return None
    try:
        return NativeId.parse(value)
    except ValueError as e:
        raise LookupFailed(address.value, f"malformed {field}: {e}") from e
