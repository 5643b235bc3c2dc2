"""
External-intent URIs for notification quick actions.

Builders raise ValueError on unusable input; the dispatcher turns that into
an unhandled response.
"""
import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote, urlparse

logger = logging.getLogger(__name__)


class IntentLauncher(Protocol):
    async def open_uri(self, uri: str) -> bool: ...


def _primary(value: Any, key: str) -> Optional[str]:
    # Values are either {key: ...} objects or the bare string itself
    if isinstance(value, dict):
        value = value.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_tel_uri(value: Any) -> str:
    phone = _primary(value, "phone")
    if not phone:
        raise ValueError("call action has no phone number")
    return f"tel:{phone.replace(' ', '')}"


def normalize_url(value: Any) -> str:
    url = _primary(value, "url")
    if not url:
        raise ValueError("link action has no url")
    if "://" not in url and ":" not in url.split("/")[0]:
        url = f"https://{url}"
    parsed = urlparse(url)
    if not parsed.scheme:
        raise ValueError(f"malformed url: {url!r}")
    if parsed.scheme in ("http", "https") and not parsed.netloc:
        raise ValueError(f"malformed url: {url!r}")
    return url


def _coordinate(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def build_map_uri(value: Any, platform: str = "ios") -> str:
    """Map query preferring coordinates over a geocoded address."""
    base = "maps:?q=" if platform == "ios" else "geo:0,0?q="
    if isinstance(value, dict):
        lat = _coordinate(value.get("lat"))
        lng = _coordinate(value.get("lng"))
        if lat is not None and lng is not None:
            return f"{base}{lat:g},{lng:g}"
    address = _primary(value, "address")
    if not address:
        raise ValueError("location action has neither coordinates nor address")
    return f"{base}{quote(address, safe='')}"


def build_mailto_uri(value: Any) -> str:
    email = _primary(value, "email")
    if not email:
        raise ValueError("email action has no address")
    subject = body = ""
    if isinstance(value, dict):
        subject = value.get("subject") or ""
        body = value.get("body") or ""
    return f"mailto:{email}?subject={quote(str(subject), safe='')}&body={quote(str(body), safe='')}"


class UnavailableIntentLauncher:
    """Used when no channel can open URIs; every quick action stays unhandled."""

    async def open_uri(self, uri: str) -> bool:
        logger.warning(f"No intent launcher configured, cannot open {uri}")
        return False
