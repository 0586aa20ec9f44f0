"""
Utility functions for Parity console output.
"""
import sys


class Colors:
    # Text colors
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    # Bright colors
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    # Formatting
    BOLD = '\033[1m'
    DIM = '\033[2m'

    # Reset
    RESET = '\033[0m'


def _use_color() -> bool:
    return hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()


def styled_print(text, color=None, style=None, indent=0):
    """
    Print styled text with optional color, style, and indentation.

    Args:
        text (str): Text to print
        color (str): Color from Colors class
        style (str): Style from Colors class
        indent (int): Number of spaces to indent
    """
    indent_str = " " * indent

    # Only apply colors if we're in a terminal that supports them
    if _use_color() and (color or style):
        formatted_text = f"{indent_str}{color or ''}{style or ''}{text}{Colors.RESET}"
    else:
        formatted_text = f"{indent_str}{text}"
    print(formatted_text)


def print_header(text):
    """Print a styled header with separator lines."""
    styled_print("\n" + "="*60, Colors.BRIGHT_CYAN, Colors.BOLD)
    styled_print(text.center(60), Colors.BRIGHT_CYAN, Colors.BOLD)
    styled_print("="*60, Colors.BRIGHT_CYAN, Colors.BOLD)


def print_subheader(text):
    """Print a styled subheader."""
    styled_print(f"\n{text}", Colors.CYAN, Colors.BOLD, 2)


def print_success(text, indent=0):
    """Print success message in green."""
    styled_print(text, Colors.GREEN, Colors.BOLD, indent)


def print_warning(text, indent=0):
    """Print warning message in yellow."""
    styled_print(text, Colors.YELLOW, Colors.BOLD, indent)


def print_error(text, indent=0):
    """Print error message in red."""
    styled_print(text, Colors.RED, Colors.BOLD, indent)


def print_info(text, indent=0):
    """Print info message in blue."""
    styled_print(text, Colors.BLUE, None, indent)


def print_side_by_side(left_title, left_lines, right_title, right_lines, width=38):
    """Print two columns of lines, marking rows that differ."""
    styled_print(f"  {left_title:<{width}} | {right_title}", Colors.BRIGHT_CYAN, Colors.BOLD)
    styled_print("  " + "-" * width + "-+-" + "-" * width, Colors.DIM)
    rows = max(len(left_lines), len(right_lines))
    for i in range(rows):
        left = left_lines[i] if i < len(left_lines) else ""
        right = right_lines[i] if i < len(right_lines) else ""
        marker = " " if left == right and i < len(left_lines) and i < len(right_lines) else "!"
        color = None if marker == " " else Colors.BRIGHT_RED
        styled_print(f"{marker} {left[:width]:<{width}} | {right[:width]}", color)


def _filter_suppressed_help(help_text: str) -> str:
    """Remove argparse SUPPRESS placeholders from help text."""
    return '\n'.join(line for line in help_text.split('\n') if 'SUPPRESS' not in line)
