from multirewards_toolkit.utils.formatters import (
    console,
    format_timestamp,
    save_json_output,
)

__all__ = [
    "console",
    "format_timestamp",
    "save_json_output",
]
