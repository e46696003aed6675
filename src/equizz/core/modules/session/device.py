"""User agent classification for session device descriptors."""

import re
from collections.abc import Callable

from equizz.core.modules.session.models import ClientInfo, DeviceInfo

DeviceParser = Callable[[ClientInfo], DeviceInfo]

# Order matters: most Chromium-based browsers also advertise "Chrome" and "Safari"
_BROWSER_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/(\d+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/(\d+)")),
    ("Samsung Internet", re.compile(r"SamsungBrowser/(\d+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/(\d+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/(\d+)")),
    ("Safari", re.compile(r"Version/(\d+)[\d.]* (?:Mobile/\S+ )?Safari/")),
    ("IE", re.compile(r"(?:MSIE |Trident/.*rv:)(\d+)")),
]

_WINDOWS_VERSIONS = {"10.0": "10", "6.3": "8.1", "6.2": "8", "6.1": "7", "6.0": "Vista", "5.1": "XP"}

_BOT_RE = re.compile(r"bot|crawler|spider|slurp|curl|wget|python-requests|httpx", re.IGNORECASE)
_TABLET_RE = re.compile(r"iPad|Tablet|PlayBook|Silk|Kindle")
_MOBILE_RE = re.compile(r"Mobi|iPhone|iPod|Android|Windows Phone")


def parse_browser(user_agent: str) -> str:
    for name, pattern in _BROWSER_PATTERNS:
        match = pattern.search(user_agent)
        if match:
            return f"{name} {match.group(1)}"
    return "Unknown"


def parse_os(user_agent: str) -> str:
    if match := re.search(r"Windows NT (\d+\.\d+)", user_agent):
        return f"Windows {_WINDOWS_VERSIONS.get(match.group(1), match.group(1))}"
    if match := re.search(r"(?:iPhone|CPU) OS (\d+(?:_\d+)*)", user_agent):
        return f"iOS {match.group(1).replace('_', '.')}"
    if match := re.search(r"Android (\d+(?:\.\d+)*)", user_agent):
        return f"Android {match.group(1)}"
    if match := re.search(r"Mac OS X (\d+(?:[_.]\d+)*)", user_agent):
        return f"macOS {match.group(1).replace('_', '.')}"
    if "CrOS" in user_agent:
        return "Chrome OS"
    if "Linux" in user_agent:
        return "Linux"
    return "Unknown"


def parse_device_type(user_agent: str) -> str:
    if _BOT_RE.search(user_agent):
        return "bot"
    # Android tablets omit the "Mobile" token
    if _TABLET_RE.search(user_agent) or ("Android" in user_agent and "Mobile" not in user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def parse_device_info(client: ClientInfo) -> DeviceInfo:
    """Build a device descriptor from request metadata.

    Browser, OS and device type are only filled in when a user agent is supplied.
    """
    info = DeviceInfo(user_agent=client.user_agent or "unknown", ip=client.ip or "unknown")
    if client.user_agent:
        info.browser = parse_browser(client.user_agent)
        info.os = parse_os(client.user_agent)
        info.device_type = parse_device_type(client.user_agent)
    return info


def merge_device_info(stored: DeviceInfo, client: ClientInfo, parser: DeviceParser) -> DeviceInfo:
    """Overlay freshly supplied request metadata on a stored descriptor.

    Fields the client did not supply keep their stored values.
    """
    if not client.user_agent and not client.ip:
        return stored
    parsed = parser(client)
    update: dict[str, str | None] = {}
    if client.ip:
        update["ip"] = parsed.ip
    if client.user_agent:
        update.update(
            user_agent=parsed.user_agent, browser=parsed.browser, os=parsed.os, device_type=parsed.device_type
        )
    return stored.model_copy(update=update)
