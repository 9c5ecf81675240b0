"""Host collaborators: wall clock, network state and time zone detection."""

from .clock import SystemClock
from .network import active_interfaces, ensure_network
from .timezone import fetch_timezone, get_num_tz_services, get_tz_service_name

__all__ = [
    "SystemClock",
    "active_interfaces",
    "ensure_network",
    "fetch_timezone",
    "get_num_tz_services",
    "get_tz_service_name",
]
