"""Time zone detection through public IP geolocation services."""
import http.client
import logging
import urllib.error
import urllib.request
from typing import Tuple

from ntpsync.utils import csv_split, split
from ntpsync.utils.constants import APP_NAME, HTTP_TIMEOUT
from ntpsync.utils.exceptions import TimezoneError

logger = logging.getLogger(__name__)

TZ_SERVICES = (
    ("http://ip-api.com", "http://ip-api.com/csv/?fields=timezone,offset"),
    ("https://ipwho.is", "https://ipwho.is/?fields=timezone.id,timezone.offset&output=csv"),
    ("https://ipapi.co", "https://ipapi.co/csv"),
)


def get_num_tz_services() -> int:
    return len(TZ_SERVICES)


def get_tz_service_name(idx: int) -> str:
    if not 0 <= idx < len(TZ_SERVICES):
        raise TimezoneError(f"Invalid tz service: {idx}")
    return TZ_SERVICES[idx][0]


def _http_get(url: str) -> str:
    req = urllib.request.Request(url, headers={"User-Agent": APP_NAME})
    try:
        with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
            return resp.read().decode("utf-8", errors="replace")
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise TimezoneError(f"HTTP request to {url} failed: {e}") from e


def _unquote(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ('"', "'"):
        return token[1:-1]
    return token


def parse_seconds_offset(response: str, service: str) -> Tuple[str, int]:
    """Parse a "name,offset_seconds" CSV line."""
    tokens = csv_split(response.strip())
    if len(tokens) != 2:
        raise TimezoneError(f"Could not parse response from {service}")
    name = _unquote(tokens[0])
    try:
        seconds = int(_unquote(tokens[1]))
    except ValueError as e:
        raise TimezoneError(f"Invalid UTC offset from {service}: {tokens[1]}") from e
    # truncate toward zero, like a duration cast
    minutes = int(seconds / 60)
    return name, minutes


def parse_hhmm_table(response: str, service: str) -> Tuple[str, int]:
    """Parse a CSV header row and value row holding "timezone" and "utc_offset" (+HHMM)."""
    lines = split(response, "\r\n")
    if len(lines) != 2:
        raise TimezoneError(f"Could not parse response from {service}")

    keys = [_unquote(k) for k in csv_split(lines[0])]
    values = [_unquote(v) for v in csv_split(lines[1])]
    if len(keys) != len(values):
        raise TimezoneError(f"Incoherent response from {service}")

    if "timezone" not in keys or "utc_offset" not in keys:
        raise TimezoneError("Could not find timezone or utc_offset fields in response.")

    name = values[keys.index("timezone")]
    hhmm = values[keys.index("utc_offset")]
    if len(hhmm) < 5 or hhmm[0] not in "+-":
        raise TimezoneError("Invalid UTC offset string.")

    try:
        total = int(hhmm[1:3]) * 60 + int(hhmm[3:5])
    except ValueError as e:
        raise TimezoneError("Invalid UTC offset string.") from e
    if hhmm[0] == '-':
        total = -total
    return name, total


def fetch_timezone(idx: int) -> Tuple[str, int]:
    """Query time zone service idx; return (zone name, UTC offset in minutes)."""
    service = get_tz_service_name(idx)
    url = TZ_SERVICES[idx][1]
    logger.debug("Querying time zone from %s", service)
    response = _http_get(url)

    if idx in (0, 1):
        return parse_seconds_offset(response, service)
    return parse_hhmm_table(response, service)
