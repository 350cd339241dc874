"""
Pytest configuration and shared fixtures.

This module provides an in-memory ledger that behaves like a MultiRewards
campaign plus HTS token facades, and a mirror node served by
httpx.MockTransport.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
import pytest

from multirewards_toolkit.addresses.encoding import native_to_evm
from multirewards_toolkit.shared.exceptions import SubmissionFailed
from multirewards_toolkit.shared.services.http_client import build_client
from multirewards_toolkit.shared.services.ledger_service import (
    LedgerReceipt,
    LedgerService,
)
from multirewards_toolkit.shared.services.mirror_node_service import (
    MirrorNodeService,
)
from multirewards_toolkit.shared.types import NativeId, SigningCredential

MIRROR_URL = "https://mirror.test/api/v1"

CAMPAIGN_EVM = "0x8ba1f109551bd432803012645ac136ddd64dba72"
TOKEN_EVM = "0x1f9840a85d5af5bf1d1762f553bcdfc4a0f3e2a1"
CAMPAIGN_ID = NativeId(0, 0, 1234)
TOKEN_ID = NativeId(0, 0, 5678)
OPERATOR_ID = NativeId(0, 0, 1001)

GENESIS_TIMESTAMP = 1_700_000_000


class FakeLedger(LedgerService):
    """
    In-memory ledger for MultiRewards + HTS token facades.

    ``approve`` replaces allowances, ``notifyRewardAmount`` pulls the reward
    through the allowance and starts the window, ``setRewardsDuration``
    reverts while a window is active. Every confirmed submission advances
    the clock by one second.
    """

    def __init__(self, now: int = GENESIS_TIMESTAMP):
        self.now = now
        self.block_number = 100
        self.submissions: List[Tuple[NativeId, str, Tuple[Any, ...]]] = []
        self.calls: List[Tuple[NativeId, str, Tuple[Any, ...]]] = []
        self.allowances: Dict[Tuple[NativeId, str, str], int] = {}
        self.windows: Dict[Tuple[NativeId, str], Dict[str, Any]] = {}
        self.balances: Dict[Tuple[NativeId, str], int] = {}
        self.associations: List[Tuple[NativeId, NativeId]] = []
        self.stakes: Dict[Tuple[NativeId, str], int] = {}
        self.staking_tokens: Dict[NativeId, str] = {}
        self.failures: Dict[str, Exception] = {}
        self.allowance_override: Optional[int] = None

    def clock(self) -> float:
        return float(self.now)

    # -- setup helpers -------------------------------------------------------

    def add_window(
        self,
        campaign_id: NativeId,
        token_id: NativeId,
        duration: int = 0,
        period_finish: int = 0,
        reward_rate: int = 0,
        distributor: str = "0x0000000000000000000000000000000000000000",
    ) -> None:
        self.windows[(campaign_id, native_to_evm(token_id).checksum)] = {
            "distributor": distributor,
            "duration": duration,
            "period_finish": period_finish,
            "reward_rate": reward_rate,
            "last_update_time": 0,
        }

    def fail_on(self, method: str, error: Exception) -> None:
        self.failures[method] = error

    def methods(self) -> List[str]:
        return [method for _, method, _ in self.submissions]

    # -- LedgerService -------------------------------------------------------

    def submit(
        self,
        contract_id: NativeId,
        method_name: str,
        args: Sequence[Any],
        credential: SigningCredential,
    ) -> LedgerReceipt:
        if method_name in self.failures:
            raise self.failures[method_name]

        sender = native_to_evm(credential.account_id).checksum
        handler: Callable[..., None] = getattr(self, f"_do_{method_name}")
        handler(contract_id, sender, *args)

        self.submissions.append((contract_id, method_name, tuple(args)))
        self.block_number += 1
        self.now += 1
        return LedgerReceipt(
            transaction_hash=f"0x{len(self.submissions):064x}",
            contract_id=contract_id,
            method=method_name,
            status="SUCCESS",
            block_number=self.block_number,
            timestamp=self.now,
        )

    def call(
        self, contract_id: NativeId, method_name: str, args: Sequence[Any]
    ) -> Any:
        self.calls.append((contract_id, method_name, tuple(args)))
        if method_name == "allowance":
            if self.allowance_override is not None:
                return self.allowance_override
            owner, spender = args
            return self.allowances.get((contract_id, owner, spender), 0)
        if method_name == "rewardData":
            window = self.windows.get((contract_id, args[0]))
            if window is None:
                return (
                    "0x0000000000000000000000000000000000000000",
                    0,
                    0,
                    0,
                    0,
                    0,
                )
            return (
                window["distributor"],
                window["duration"],
                window["period_finish"],
                window["reward_rate"],
                window["last_update_time"],
                0,
            )
        if method_name == "balanceOf":
            return self.balances.get((contract_id, args[0]), 0)
        if method_name == "stakingToken":
            return self.staking_tokens[contract_id]
        raise AssertionError(f"Unexpected call {method_name}")

    # -- contract behaviour --------------------------------------------------

    def _do_approve(self, token_id, sender, spender, amount):
        self.allowances[(token_id, sender, spender)] = amount

    def _do_associate(self, token_id, sender):
        self.associations.append((token_id, sender))

    def _do_addReward(self, campaign_id, sender, token, distributor, duration):
        self.windows[(campaign_id, token)] = {
            "distributor": distributor,
            "duration": duration,
            "period_finish": 0,
            "reward_rate": 0,
            "last_update_time": 0,
        }

    def _do_setRewardsDuration(self, campaign_id, sender, token, duration):
        window = self.windows.setdefault(
            (campaign_id, token),
            {
                "distributor": sender,
                "duration": 0,
                "period_finish": 0,
                "reward_rate": 0,
                "last_update_time": 0,
            },
        )
        if self.now <= window["period_finish"]:
            raise SubmissionFailed(
                "CONTRACT_REVERT_EXECUTED",
                str(campaign_id),
                "setRewardsDuration",
                "Reward period still active",
            )
        window["duration"] = duration

    def _do_notifyRewardAmount(self, campaign_id, sender, token, amount):
        token_id = _token_from_evm(token)
        spender = native_to_evm(campaign_id).checksum
        key = (token_id, sender, spender)
        if self.allowances.get(key, 0) < amount:
            raise SubmissionFailed(
                "CONTRACT_REVERT_EXECUTED",
                str(campaign_id),
                "notifyRewardAmount",
                "ERC20: insufficient allowance",
            )
        self.allowances[key] -= amount
        window = self.windows[(campaign_id, token)]
        start = self.now + 1
        window["reward_rate"] = amount // window["duration"]
        window["last_update_time"] = start
        window["period_finish"] = start + window["duration"]

    def _do_stake(self, campaign_id, sender, amount):
        key = (campaign_id, sender)
        self.stakes[key] = self.stakes.get(key, 0) + amount


def _token_from_evm(evm: str) -> NativeId:
    raw = bytes.fromhex(evm[2:])
    return NativeId(
        int.from_bytes(raw[:4], "big"),
        int.from_bytes(raw[4:12], "big"),
        int.from_bytes(raw[12:], "big"),
    )


class MirrorRoutes:
    """Route table for the fake mirror node; records every request path."""

    def __init__(self):
        self.routes: Dict[str, httpx.Response] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, status_code: int = 200, json: Any = None):
        self.routes[path] = httpx.Response(status_code, json=json)

    def fail(self, path: str, error: Exception):
        self.routes[path] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/api/v1", "", 1)
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(
                404,
                json={"_status": {"messages": [{"message": "Not found"}]}},
            )
        if isinstance(route, Exception):
            raise route
        return route

    def paths(self) -> List[str]:
        return [
            request.url.path.replace("/api/v1", "", 1)
            for request in self.requests
        ]


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def mirror_routes() -> MirrorRoutes:
    return MirrorRoutes()


@pytest.fixture
def mirror(mirror_routes) -> MirrorNodeService:
    client = build_client(transport=httpx.MockTransport(mirror_routes.handler))
    return MirrorNodeService(base_url=MIRROR_URL, client=client)


@pytest.fixture
def credential() -> SigningCredential:
    return SigningCredential(
        account_id=OPERATOR_ID,
        private_key="0x" + "11" * 32,
    )


@pytest.fixture
def indexed_mirror(mirror_routes, mirror) -> MirrorNodeService:
    """Mirror that knows the sample campaign and reward token."""
    mirror_routes.add(
        f"/contracts/{CAMPAIGN_EVM}", json={"contract_id": str(CAMPAIGN_ID)}
    )
    mirror_routes.add(
        f"/contracts/{TOKEN_EVM}", json={"contract_id": str(TOKEN_ID)}
    )
    return mirror


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
