import colorama
from colorama import Fore, Style

colorama.init(autoreset=True)


def format_bytes(size: int) -> str:
    """Return ``size`` as a short human readable string, e.g. ``5.0 MiB``."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def ok(message: str) -> str:
    return f"{Fore.GREEN}✓ {message}{Style.RESET_ALL}"


def warn(message: str) -> str:
    return f"{Fore.YELLOW}⚠ {message}{Style.RESET_ALL}"


def fail(message: str) -> str:
    return f"{Fore.RED}✗ {message}{Style.RESET_ALL}"


__all__ = ["Fore", "Style", "fail", "format_bytes", "ok", "warn"]
