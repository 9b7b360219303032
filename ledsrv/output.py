"""
Colored terminal output utilities for the ledsrv command line tools.
Usage:
    from ledsrv.output import success, error, info, status_line
"""

import sys


# ANSI color codes
class C:
    RED     = '\033[91m'
    GREEN   = '\033[92m'
    YELLOW  = '\033[93m'
    BLUE    = '\033[94m'
    CYAN    = '\033[96m'
    GRAY    = '\033[90m'
    BOLD    = '\033[1m'
    RESET   = '\033[0m'


def _print(color, symbol, msg, **kwargs):
    print(f"{color}{symbol}{C.RESET} {msg}", **kwargs)

def success(msg, **kw):  _print(C.GREEN,   '[+]', msg, **kw)
def error(msg, **kw):    _print(C.RED,     '[-]', msg, file=sys.stderr, **kw)
def info(msg, **kw):     _print(C.BLUE,    '[*]', msg, **kw)

def status_line(label, status, ok=True):
    """Print a status check line."""
    icon = f"{C.GREEN}✓{C.RESET}" if ok else f"{C.RED}✗{C.RESET}"
    print(f"  {icon} {label:<12} {C.BOLD}{status}{C.RESET}")
