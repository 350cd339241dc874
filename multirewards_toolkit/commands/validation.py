from eth_utils import is_address

from multirewards_toolkit.shared.types import EvmAddress, NativeId


def validate_evm_address(address: str, param_name: str = "address") -> EvmAddress:
    """Validate and return an EVM address"""
    if not address or not isinstance(address, str):
        raise ValueError(
            f"Invalid {param_name}: address must be a non-empty string"
        )
    if not is_address(address):
        raise ValueError(
            f"Invalid {param_name}: {address} is not a valid EVM address"
        )
    return EvmAddress(address)


def is_native_id(value: str) -> bool:
    try:
        NativeId.parse(value)
    except ValueError:
        return False
    return True


def validate_native_id(value: str, param_name: str = "id") -> NativeId:
    """Validate and return a shard.realm.num id"""
    try:
        return NativeId.parse(value)
    except ValueError:
        raise ValueError(
            f"Invalid {param_name}: {value} is not a shard.realm.num id"
        )


def validate_amount(amount: int, allow_zero: bool = False) -> int:
    """Validate a token amount in the smallest unit"""
    if amount < 0 or (amount == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValueError(f"Invalid amount: {amount}. Must be {bound}")
    return amount


def validate_duration(duration: int) -> int:
    """Validate a reward duration in seconds"""
    if duration <= 0:
        raise ValueError(
            f"Invalid duration: {duration}. Must be > 0 seconds"
        )
    return duration
