"""All constants for the project"""

import os

from dotenv import load_dotenv

from multirewards_toolkit.shared.exceptions import ConfigurationException

load_dotenv()


class NetworkConstants:
    """Hedera network endpoints, selected with MR_NETWORK"""

    CHAIN_IDS = {
        "mainnet": 295,
        "testnet": 296,
        "previewnet": 297,
    }

    MIRROR_URLS = {
        "mainnet": "https://mainnet-public.mirrornode.hedera.com/api/v1",
        "testnet": "https://testnet.mirrornode.hedera.com/api/v1",
        "previewnet": "https://previewnet.mirrornode.hedera.com/api/v1",
    }

    RPC_URLS = {
        "mainnet": "https://mainnet.hashio.io/api",
        "testnet": "https://testnet.hashio.io/api",
        "previewnet": "https://previewnet.hashio.io/api",
    }

    DEFAULT_NETWORK = "testnet"
    DEFAULT_GAS_LIMIT = 2_000_000
    DEFAULT_RECEIPT_TIMEOUT = 120

    @staticmethod
    def get_network() -> str:
        network = os.getenv(
            "MR_NETWORK", NetworkConstants.DEFAULT_NETWORK
        ).lower()
        if network not in NetworkConstants.CHAIN_IDS:
            raise ConfigurationException(
                f"Unknown MR_NETWORK '{network}'. Must be one of "
                f"{sorted(NetworkConstants.CHAIN_IDS)}"
            )
        return network

    @staticmethod
    def get_chain_id() -> int:
        return NetworkConstants.CHAIN_IDS[NetworkConstants.get_network()]

    @staticmethod
    def get_mirror_url() -> str:
        override = os.getenv("MR_MIRROR_URL")
        if override:
            return override.rstrip("/")
        return NetworkConstants.MIRROR_URLS[NetworkConstants.get_network()]

    @staticmethod
    def get_rpc_url() -> str:
        override = os.getenv("MR_RPC_URL")
        if override:
            return override
        return NetworkConstants.RPC_URLS[NetworkConstants.get_network()]

    @staticmethod
    def get_gas_limit() -> int:
        return int(
            os.getenv("MR_GAS_LIMIT", NetworkConstants.DEFAULT_GAS_LIMIT)
        )

    @staticmethod
    def get_receipt_timeout() -> float:
        return float(
            os.getenv(
                "MR_RECEIPT_TIMEOUT", NetworkConstants.DEFAULT_RECEIPT_TIMEOUT
            )
        )


class OperatorConstants:
    """Signing account used for every write"""

    @staticmethod
    def get_operator_id() -> str:
        operator_id = os.getenv("OPERATOR_ID")
        if not operator_id:
            raise ConfigurationException(
                "OPERATOR_ID is not set (required to sign transactions)"
            )
        return operator_id

    @staticmethod
    def get_operator_key() -> str:
        operator_key = os.getenv("OPERATOR_KEY")
        if not operator_key:
            raise ConfigurationException(
                "OPERATOR_KEY is not set (required to sign transactions)"
            )
        return operator_key
