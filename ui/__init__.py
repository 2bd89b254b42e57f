"""UI layer -- Rich dashboard, output formatters, and logging setup."""

from .dashboard import (
    console,
    print_check_result,
    print_full_result,
    print_header,
    print_history,
    print_snapshot,
    print_stream_event,
    quality_badge,
)
from .logging_setup import configure_logging
from .output import (
    create_result_json,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)

__all__ = [
    "configure_logging",
    "console",
    "create_result_json",
    "format_csv_header",
    "format_csv_row",
    "format_text_result",
    "print_check_result",
    "print_full_result",
    "print_header",
    "print_history",
    "print_snapshot",
    "print_stream_event",
    "quality_badge",
    "save_json",
]
