"""
Console helpers shared by the Parity command handlers.
"""
from .utils import (
    Colors,
    styled_print,
    print_header,
    print_subheader,
    print_success,
    print_warning,
    print_error,
    print_info,
    print_side_by_side,
)

__all__ = [
    'Colors',
    'styled_print',
    'print_header',
    'print_subheader',
    'print_success',
    'print_warning',
    'print_error',
    'print_info',
    'print_side_by_side',
]
