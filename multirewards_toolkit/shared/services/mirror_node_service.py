"""
Mirror node service module for the Hedera mirror node REST API.

The mirror node is a read-only indexer that lags consensus by a few
seconds. A 404 therefore means "not indexed (yet)" and is returned as
``None``; every other non-2xx response or transport error is raised as
LookupFailed. Nothing here retries.
"""

from typing import Any, Dict, List, Optional

import httpx

from multirewards_toolkit.shared.constants import NetworkConstants
from multirewards_toolkit.shared.exceptions import LookupFailed
from multirewards_toolkit.shared.logging import get_logger
from multirewards_toolkit.shared.services.http_client import get_client

logger = get_logger(__name__)


class MirrorNodeService:
    """Thin client over the mirror node endpoints the toolkit needs."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or NetworkConstants.get_mirror_url()).rstrip(
            "/"
        )
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def get_contract(self, evm_address: str) -> Optional[Dict[str, Any]]:
        """
        Fetch ``/contracts/{evm_address}``.

        Args:
            evm_address: Contract EVM address (long-zero or create2 form)

        Returns:
            Contract JSON body, or None if the mirror has no such contract.

        Raises:
            LookupFailed: on transport errors or non-404 error statuses.
        """
        return self._get(f"/contracts/{evm_address}", evm_address)

    def get_account(self, id_or_address: str) -> Optional[Dict[str, Any]]:
        """Fetch ``/accounts/{id_or_address}`` (native id, alias or EVM address)."""
        return self._get(f"/accounts/{id_or_address}", id_or_address)

    def get_token_relationships(
        self, account_id: str, token_id: str
    ) -> List[Dict[str, Any]]:
        """
        Fetch the account's relationship with one token.

        Returns:
            The ``tokens`` list (empty when the account is not associated).
        """
        body = self._get(
            f"/accounts/{account_id}/tokens",
            account_id,
            params={"token.id": token_id},
        )
        if not body:
            return []
        return body.get("tokens", [])

    def get_contract_result(
        self, transaction_hash: str
    ) -> Optional[Dict[str, Any]]:
        """Fetch ``/contracts/results/{hash}`` for the ledger status of a call."""
        return self._get(
            f"/contracts/results/{transaction_hash}", transaction_hash
        )

    def _get(
        self,
        path: str,
        subject: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = self.client.get(url, params=params)
        except httpx.RequestError as e:
            logger.error(f"Mirror request to {url} failed: {e}")
            raise LookupFailed(subject, str(e)) from e

        if response.status_code == 404:
            logger.debug(f"Mirror has no record for {subject}")
            return None

        if not response.is_success:
            logger.error(
                f"Mirror returned HTTP {response.status_code} for {url}"
            )
            raise LookupFailed(
                subject, _error_message(response), response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise LookupFailed(
                subject, f"invalid JSON body: {e}", response.status_code
            ) from e


def _error_message(response: httpx.Response) -> str:
    """
    Extract the mirror's error message.

    Mirror errors look like ``{"_status": {"messages": [{"message": "..."}]}}``.
    """
    try:
        messages = response.json()["_status"]["messages"]
        return "; ".join(m.get("message", "") for m in messages) or "error"
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase or "error"
