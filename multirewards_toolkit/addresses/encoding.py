"""
Deterministic conversions between native ids and long-zero EVM addresses.

A long-zero address packs a native id into 20 bytes:
4 bytes shard | 8 bytes realm | 8 bytes num, all big-endian.
"""

from typing import Optional

from multirewards_toolkit.shared.types import EvmAddress, NativeId

_SHARD_BYTES = 4
_REALM_BYTES = 8
_NUM_BYTES = 8


def native_to_evm(native_id: NativeId) -> EvmAddress:
    """Encode a native id as its long-zero EVM address."""
    if native_id.shard >= 2 ** (8 * _SHARD_BYTES):
        raise ValueError(f"Shard out of range for EVM encoding: {native_id}")
    if native_id.realm >= 2 ** (8 * _REALM_BYTES):
        raise ValueError(f"Realm out of range for EVM encoding: {native_id}")
    if native_id.num >= 2 ** (8 * _NUM_BYTES):
        raise ValueError(f"Num out of range for EVM encoding: {native_id}")

    raw = (
        native_id.shard.to_bytes(_SHARD_BYTES, "big")
        + native_id.realm.to_bytes(_REALM_BYTES, "big")
        + native_id.num.to_bytes(_NUM_BYTES, "big")
    )
    return EvmAddress("0x" + raw.hex())


def evm_to_native(
    evm_address: EvmAddress, shard: int = 0, realm: int = 0
) -> Optional[NativeId]:
    """
    Decode a long-zero address for the given shard and realm.

    Returns None when the address does not carry that shard/realm prefix,
    i.e. it is an alias or create2 address that only the mirror can map.
    """
    raw = bytes.fromhex(evm_address.value[2:])
    decoded_shard = int.from_bytes(raw[:_SHARD_BYTES], "big")
    decoded_realm = int.from_bytes(
        raw[_SHARD_BYTES : _SHARD_BYTES + _REALM_BYTES], "big"
    )
    if decoded_shard != shard or decoded_realm != realm:
        return None
    num = int.from_bytes(raw[_SHARD_BYTES + _REALM_BYTES :], "big")
    return NativeId(decoded_shard, decoded_realm, num)


def is_long_zero(evm_address: EvmAddress, shard: int = 0, realm: int = 0) -> bool:
    return evm_to_native(evm_address, shard, realm) is not None
