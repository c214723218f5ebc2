"""Utility modules for contentlist.

This module exports commonly used utility functions.
"""

from contentlist.utils.formatting import (
    console,
    create_entry_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_entry_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
