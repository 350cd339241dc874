"""
Shared type definitions used across the MultiRewards toolkit.

The two address forms are deliberately separate types. Converting between
them goes through ``multirewards_toolkit.addresses.translator``.
"""

import re
from dataclasses import dataclass, field
from typing import Union

from eth_utils import is_hex_address, to_checksum_address

_NATIVE_ID_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")

# =============================================================================
# ADDRESS TYPES
# =============================================================================


@dataclass(frozen=True)
class EvmAddress:
    """20-byte EVM address, stored lowercase with a 0x prefix."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not is_hex_address(self.value):
            raise ValueError(f"Invalid EVM address: {self.value!r}")
        normalized = self.value.lower()
        if not normalized.startswith("0x"):
            normalized = "0x" + normalized
        object.__setattr__(self, "value", normalized)

    @property
    def checksum(self) -> str:
        return to_checksum_address(self.value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NativeId:
    """Ledger-native ``shard.realm.num`` identifier."""

    shard: int
    realm: int
    num: int

    def __post_init__(self):
        for part in (self.shard, self.realm, self.num):
            if not isinstance(part, int) or part < 0:
                raise ValueError(
                    f"Invalid native id component: {part!r}"
                )

    @classmethod
    def parse(cls, text: str) -> "NativeId":
        """Parse ``"0.0.1234"`` into a NativeId."""
        match = _NATIVE_ID_PATTERN.match(str(text).strip())
        if not match:
            raise ValueError(f"Invalid native id: {text!r}")
        shard, realm, num = (int(part) for part in match.groups())
        return cls(shard, realm, num)

    def __str__(self) -> str:
        return f"{self.shard}.{self.realm}.{self.num}"


@dataclass(frozen=True)
class Unresolved:
    """An EVM address the lookup service could not map to a native id."""

    evm_address: EvmAddress

    def __str__(self) -> str:
        return f"Unresolved({self.evm_address})"


NativeIdResolution = Union[NativeId, Unresolved]


# =============================================================================
# CREDENTIALS
# =============================================================================


@dataclass(frozen=True)
class SigningCredential:
    """An already-provisioned account id and its ECDSA private key."""

    account_id: NativeId
    private_key: str = field(repr=False)

    def __str__(self) -> str:
        return f"SigningCredential({self.account_id})"
