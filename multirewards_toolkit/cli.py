#!/usr/bin/env python3
"""
Unified CLI for the MultiRewards toolkit.

Examples:
  - Full funding run
    multirewards setup-campaign --campaign 0x... --reward 0x... --amount 1000 --duration 604800

  - Single steps (to resume a failed run)
    multirewards resolve-id --address 0x... --attempts 5
    multirewards approve-token --spender 0.0.1234 --token 0.0.5678 --amount 1000
    multirewards set-duration --campaign 0.0.1234 --token 0.0.5678 --duration 604800
    multirewards send-reward --campaign 0.0.1234 --token 0.0.5678 --amount 1000

  - Setup and inspection
    multirewards associate-token --token 0.0.5678
    multirewards enable-reward --campaign 0.0.1234 --token 0.0.5678 --duration 604800
    multirewards reward-window --campaign 0.0.1234 --token 0.0.5678
    multirewards stake --campaign 0.0.1234 --token 0.0.4321 --amount 100

Campaigns and tokens can be given as native ids or EVM addresses.
Signing uses OPERATOR_ID / OPERATOR_KEY (see .env).
"""

import argparse
import sys
from typing import List, Optional

from multirewards_toolkit.addresses.translator import AddressTranslator
from multirewards_toolkit.campaigns.orchestrator import (
    CampaignFundingOrchestrator,
)
from multirewards_toolkit.campaigns.staking import StakingService
from multirewards_toolkit.commands.helpers import (
    get_ledger,
    get_mirror,
    load_operator_credential,
    parse_target,
    wait_for_native_id,
)
from multirewards_toolkit.commands.validation import (
    validate_amount,
    validate_duration,
    validate_evm_address,
    validate_native_id,
)
from multirewards_toolkit.rewards.dispatcher import RewardFundingDispatcher
from multirewards_toolkit.rewards.window import RewardWindowController
from multirewards_toolkit.shared.types import Unresolved
from multirewards_toolkit.tokens.permissions import TokenPermissionManager
from multirewards_toolkit.utils.formatters import (
    console,
    create_funding_table,
    create_window_table,
    format_timestamp,
    generate_timestamped_filename,
    print_failure,
    save_json_output,
)


def _translator() -> AddressTranslator:
    return AddressTranslator(get_mirror())


def cmd_setup_campaign(args: argparse.Namespace) -> None:
    amount = validate_amount(args.amount)
    duration = validate_duration(args.duration)
    campaign = validate_evm_address(args.campaign, "campaign")
    reward = validate_evm_address(args.reward, "reward")
    credential = load_operator_credential()

    if args.index_attempts > 1:
        # Wait for the mirror to index a freshly deployed campaign
        wait_for_native_id(_translator(), campaign.value, args.index_attempts)

    orchestrator = CampaignFundingOrchestrator(get_ledger(), get_mirror())
    result = orchestrator.run(
        campaign,
        reward,
        amount,
        duration,
        credential,
        allow_active_window=args.allow_active_window,
    )

    if result.success:
        for warning in result.errors:
            console.print(
                f"[yellow]Warning ({warning.source}):[/yellow] "
                f"{warning.message}"
            )
        if args.json:
            console.print_json(data=result.data.to_dict())
        else:
            console.print(create_funding_table(result.data))
        if args.output:
            save_json_output(result.data.to_dict(), args.output)
        console.print("[green]Campaign funded.[/green]")
        return

    failure = result.failure
    print_failure(failure)
    filename = args.output or generate_timestamped_filename("failed_funding")
    save_json_output(failure.to_dict(), filename)
    sys.exit(1)


def cmd_resolve_id(args: argparse.Namespace) -> None:
    translator = _translator()
    if args.account:
        resolved = translator.resolve_account_id(
            validate_evm_address(args.address)
        )
        if isinstance(resolved, Unresolved):
            console.print(f"[yellow]{resolved}[/yellow]")
            sys.exit(1)
    else:
        resolved = wait_for_native_id(translator, args.address, args.attempts)
    console.print(f"{args.address} → [bold]{resolved}[/bold]")


def cmd_evm_address(args: argparse.Namespace) -> None:
    native_id = validate_native_id(args.id)
    evm_address = _translator().resolve_evm_address(native_id)
    console.print(f"{native_id} → [bold]{evm_address.checksum}[/bold]")


def cmd_associate_token(args: argparse.Namespace) -> None:
    credential = load_operator_credential()
    token_id = parse_target(_translator(), args.token)
    manager = TokenPermissionManager(get_ledger(), get_mirror())
    receipt = manager.associate(credential.account_id, credential, token_id)
    if receipt is None:
        console.print(f"{credential.account_id} already holds {token_id}")
    else:
        console.print(
            f"Associated {token_id} with {credential.account_id} "
            f"(tx {receipt.transaction_hash})"
        )


def cmd_approve_token(args: argparse.Namespace) -> None:
    amount = validate_amount(args.amount, allow_zero=True)
    credential = load_operator_credential()
    translator = _translator()
    spender_id = parse_target(translator, args.spender)
    token_id = parse_target(translator, args.token)

    manager = TokenPermissionManager(get_ledger(), get_mirror())
    approval = manager.approve(
        credential.account_id, credential, spender_id, token_id, amount
    )
    console.print(
        f"Approved {spender_id} for {amount} of {token_id} "
        f"(tx {approval.receipt.transaction_hash})"
    )


def cmd_allowance(args: argparse.Namespace) -> None:
    translator = _translator()
    owner_id = (
        validate_native_id(args.owner, "owner")
        if args.owner
        else load_operator_credential().account_id
    )
    spender_id = parse_target(translator, args.spender)
    token_id = parse_target(translator, args.token)
    amount = TokenPermissionManager(get_ledger()).allowance(
        owner_id, spender_id, token_id
    )
    console.print(
        f"Allowance of {spender_id} over {owner_id}'s {token_id}: "
        f"[bold]{amount}[/bold]"
    )


def cmd_enable_reward(args: argparse.Namespace) -> None:
    duration = validate_duration(args.duration)
    credential = load_operator_credential()
    translator = _translator()
    campaign_id = parse_target(translator, args.campaign, args.index_attempts)
    token_id = parse_target(translator, args.token)
    distributor_id = (
        validate_native_id(args.distributor, "distributor")
        if args.distributor
        else credential.account_id
    )
    receipt = RewardWindowController(get_ledger()).add_reward(
        campaign_id, token_id, distributor_id, duration, credential
    )
    console.print(
        f"Enabled reward {token_id} on {campaign_id} "
        f"(tx {receipt.transaction_hash})"
    )


def cmd_set_duration(args: argparse.Namespace) -> None:
    duration = validate_duration(args.duration)
    credential = load_operator_credential()
    translator = _translator()
    campaign_id = parse_target(translator, args.campaign)
    token_id = parse_target(translator, args.token)
    receipt = RewardWindowController(get_ledger()).set_duration(
        campaign_id, token_id, duration, credential
    )
    console.print(
        f"Set reward duration of {token_id} on {campaign_id} to "
        f"{duration}s (tx {receipt.transaction_hash})"
    )


def cmd_send_reward(args: argparse.Namespace) -> None:
    amount = validate_amount(args.amount)
    credential = load_operator_credential()
    translator = _translator()
    campaign_id = parse_target(translator, args.campaign)
    token_id = parse_target(translator, args.token)
    funding = RewardFundingDispatcher(get_ledger()).fund(
        campaign_id, token_id, amount, credential
    )
    console.print(
        f"Sent {amount} of {token_id} to {campaign_id}; window starts "
        f"{format_timestamp(funding.start_timestamp)} "
        f"(tx {funding.receipt.transaction_hash})"
    )


def cmd_reward_window(args: argparse.Namespace) -> None:
    translator = _translator()
    campaign_id = parse_target(translator, args.campaign)
    token_id = parse_target(translator, args.token)
    window = RewardWindowController(get_ledger()).get_window(
        campaign_id, token_id
    )
    if args.json:
        console.print_json(data=window.to_dict())
    else:
        console.print(create_window_table(window))


def cmd_stake(args: argparse.Namespace) -> None:
    amount = validate_amount(args.amount)
    credential = load_operator_credential()
    translator = _translator()
    campaign_id = parse_target(translator, args.campaign)
    token_id = parse_target(translator, args.token)
    _approval, receipt = StakingService(get_ledger()).stake(
        campaign_id, token_id, amount, credential
    )
    console.print(
        f"Staked {amount} of {token_id} in {campaign_id} "
        f"(tx {receipt.transaction_hash})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multirewards",
        description="Unified CLI for the MultiRewards toolkit",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # setup-campaign
    p_setup = sub.add_parser(
        "setup-campaign",
        help="Approve, set duration and fund a campaign reward",
    )
    p_setup.add_argument("--campaign", type=str, required=True)
    p_setup.add_argument("--reward", type=str, required=True)
    p_setup.add_argument("--amount", type=int, required=True)
    p_setup.add_argument("--duration", type=int, required=True)
    p_setup.add_argument(
        "--allow-active-window",
        action="store_true",
        help="Skip the duration step if the window is already active",
    )
    p_setup.add_argument(
        "--index-attempts",
        type=int,
        default=1,
        help="Wait for the mirror to index the campaign (attempts)",
    )
    p_setup.add_argument("--json", action="store_true", help="Output JSON")
    p_setup.add_argument("--output", type=str, help="Output filename")
    p_setup.set_defaults(func=cmd_setup_campaign)

    # resolve-id
    p_rid = sub.add_parser("resolve-id", help="EVM address to native id")
    p_rid.add_argument("--address", type=str, required=True)
    p_rid.add_argument("--attempts", type=int, default=1)
    p_rid.add_argument(
        "--account",
        action="store_true",
        help="Resolve an account alias instead of a contract",
    )
    p_rid.set_defaults(func=cmd_resolve_id)

    # evm-address
    p_evm = sub.add_parser("evm-address", help="Native id to EVM address")
    p_evm.add_argument("--id", type=str, required=True)
    p_evm.set_defaults(func=cmd_evm_address)

    # associate-token
    p_assoc = sub.add_parser(
        "associate-token", help="Associate a token with the operator"
    )
    p_assoc.add_argument("--token", type=str, required=True)
    p_assoc.set_defaults(func=cmd_associate_token)

    # approve-token
    p_approve = sub.add_parser(
        "approve-token", help="Approve a spender for the operator's tokens"
    )
    p_approve.add_argument("--spender", type=str, required=True)
    p_approve.add_argument("--token", type=str, required=True)
    p_approve.add_argument("--amount", type=int, required=True)
    p_approve.set_defaults(func=cmd_approve_token)

    # allowance
    p_allow = sub.add_parser("allowance", help="Read a token allowance")
    p_allow.add_argument("--spender", type=str, required=True)
    p_allow.add_argument("--token", type=str, required=True)
    p_allow.add_argument(
        "--owner", type=str, help="Owner id (defaults to the operator)"
    )
    p_allow.set_defaults(func=cmd_allowance)

    # enable-reward
    p_enable = sub.add_parser(
        "enable-reward", help="Register a reward token on a campaign"
    )
    p_enable.add_argument("--campaign", type=str, required=True)
    p_enable.add_argument("--token", type=str, required=True)
    p_enable.add_argument("--duration", type=int, required=True)
    p_enable.add_argument(
        "--distributor", type=str, help="Distributor id (defaults to operator)"
    )
    p_enable.add_argument("--index-attempts", type=int, default=1)
    p_enable.set_defaults(func=cmd_enable_reward)

    # set-duration
    p_dur = sub.add_parser("set-duration", help="Set a reward duration")
    p_dur.add_argument("--campaign", type=str, required=True)
    p_dur.add_argument("--token", type=str, required=True)
    p_dur.add_argument("--duration", type=int, required=True)
    p_dur.set_defaults(func=cmd_set_duration)

    # send-reward
    p_send = sub.add_parser("send-reward", help="Fund a reward window")
    p_send.add_argument("--campaign", type=str, required=True)
    p_send.add_argument("--token", type=str, required=True)
    p_send.add_argument("--amount", type=int, required=True)
    p_send.set_defaults(func=cmd_send_reward)

    # reward-window
    p_win = sub.add_parser("reward-window", help="Show a reward window")
    p_win.add_argument("--campaign", type=str, required=True)
    p_win.add_argument("--token", type=str, required=True)
    p_win.add_argument("--json", action="store_true", help="Output JSON")
    p_win.set_defaults(func=cmd_reward_window)

    # stake
    p_stake = sub.add_parser("stake", help="Stake into a campaign")
    p_stake.add_argument("--campaign", type=str, required=True)
    p_stake.add_argument("--token", type=str, required=True)
    p_stake.add_argument("--amount", type=int, required=True)
    p_stake.set_defaults(func=cmd_stake)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except Exception as e:
        # Basic error print; avoid heavy formatting for simplicity
        console.print(f"[red]Error:[/red] {str(e)}")
        raise


if __name__ == "__main__":
    main()
