from typing import List

import psutil

from ntpsync.utils.exceptions import NetworkError


def _is_loopback(name: str) -> bool:
    lowered = name.lower()
    return lowered == 'lo' or lowered.startswith('lo0') or 'loopback' in lowered


def active_interfaces() -> List[str]:
    """Names of network interfaces that are up, excluding loopback."""
    try:
        stats = psutil.net_if_stats()
    except (OSError, psutil.Error):
        return []
    return sorted(name for name, st in stats.items() if st.isup and not _is_loopback(name))


def ensure_network() -> None:
    if not active_interfaces():
        raise NetworkError("Network error (no active network interface)")
