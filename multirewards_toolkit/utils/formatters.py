"""Shared formatting and file utilities for commands."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.table import Table

from multirewards_toolkit.campaigns.models import FundingDetails, RewardWindow
from multirewards_toolkit.shared.results import ProcessingError

# Shared console instance
console = Console()

# Subcommand that re-runs each failed stage by hand
RESUME_COMMANDS = {
    "AddressResolution": "resolve-id",
    "Approval": "approve-token",
    "DurationSetting": "set-duration",
    "Funding": "send-reward",
}


def format_timestamp(
    timestamp: Optional[int], format_str: str = "%Y-%m-%d %H:%M:%S UTC"
) -> str:
    """
    Format a Unix timestamp to a readable UTC date string.

    Args:
        timestamp: Unix timestamp
        format_str: strftime format string

    Returns:
        Formatted date string, or "-" when there is no timestamp
    """
    if not timestamp:
        return "-"
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime(format_str)


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filepath = output_path / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def generate_timestamped_filename(prefix: str, extension: str = "json") -> str:
    """
    Generate a filename with timestamp.

    Returns:
        Filename like "prefix_20240315_123456.json"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def create_funding_table(details: FundingDetails) -> Table:
    """Rich table summarizing a completed funding run."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Field", width=18)
    table.add_column("Value")

    table.add_row("Campaign", str(details.campaign_id))
    table.add_row("Reward token", str(details.reward_token_id))
    table.add_row("Amount", str(details.amount))
    table.add_row("Duration", f"{details.duration_seconds}s")
    table.add_row("Window start", format_timestamp(details.start_timestamp))
    table.add_row("Approval tx", details.approval.receipt.transaction_hash)
    if details.duration_receipt:
        table.add_row(
            "Duration tx", details.duration_receipt.transaction_hash
        )
    else:
        table.add_row("Duration tx", "[yellow]skipped[/yellow]")
    table.add_row("Funding tx", details.funding.receipt.transaction_hash)
    table.add_row(
        "States", " -> ".join(state.value for state in details.states)
    )
    return table


def create_window_table(window: RewardWindow) -> Table:
    """Rich table for one reward window."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        pad_edge=False,
        box=None,
    )
    table.add_column("Field", width=18)
    table.add_column("Value")

    status = "[green]active[/green]" if window.active else "[dim]inactive[/dim]"
    table.add_row("Token", str(window.token_id))
    table.add_row("Status", status)
    table.add_row("Distributor", window.distributor)
    table.add_row("Duration", f"{window.duration_seconds}s")
    table.add_row("Start", format_timestamp(window.start_timestamp))
    table.add_row("Finish", format_timestamp(window.period_finish))
    table.add_row("Reward rate", str(window.reward_rate))
    table.add_row("Total", str(window.total_amount))
    return table


def print_failure(error: ProcessingError) -> None:
    """Print the failed stage, its raw cause, and how to resume it."""
    cause = type(error.exception).__name__ if error.exception else "Error"
    console.print(
        f"[red]Failed at {error.source}[/red] ([bold]{cause}[/bold]): "
        f"{error.message}"
    )
    states = error.context.get("states")
    if states:
        console.print(f"[dim]States: {' -> '.join(states)}[/dim]")

    command = RESUME_COMMANDS.get(error.source)
    if command:
        console.print(
            f"Resume manually with [cyan]multirewards {command}[/cyan] using:"
        )
    for key, value in error.context.items():
        if key != "states":
            console.print(f"  {key}: {value}")
