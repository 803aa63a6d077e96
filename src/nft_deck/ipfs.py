"""IPFS URI handling: turn raw metadata URIs into fetchable gateway URLs"""

from typing import List, Optional, Sequence
from urllib.parse import urlsplit

from .config import config


def _gateways(gateways: Optional[Sequence[str]]) -> List[str]:
    bases = gateways if gateways is not None else config.ipfs_gateways
    out: List[str] = []
    for base in bases:
        if base not in out:
            out.append(base)
    return out


def ipfs_path(uri: Optional[str]) -> Optional[str]:
    """
    Extract ``<cid>/<path>[?query]`` from an IPFS-shaped reference.

    Recognized forms:
        ipfs://<cid>/<path>
        ipfs://ipfs/<cid>/<path>
        ipfs/<cid>/<path>
        /ipfs/<cid>/<path>
        http(s)://<gateway>/ipfs/<cid>/<path>?<query>

    Returns None when the input is not IPFS-shaped and "" when it is but
    carries no CID. An http(s) URL whose /ipfs/ path has no CID is treated
    as an ordinary URL.
    """
    if not uri or not isinstance(uri, str):
        return None
    s = uri.strip()
    lower = s.lower()

    if lower.startswith("ipfs://"):
        rest = s[len("ipfs://"):].lstrip("/")
        if rest.lower().startswith("ipfs/"):
            rest = rest[len("ipfs/"):]
    elif lower.startswith("ipfs/"):
        rest = s[len("ipfs/"):]
    elif lower.startswith("/ipfs/"):
        rest = s[len("/ipfs/"):]
    elif lower.startswith(("http://", "https://")):
        try:
            parts = urlsplit(s)
        except ValueError:
            return None
        if not parts.path.lower().startswith("/ipfs/"):
            return None
        rest = parts.path[len("/ipfs/"):].lstrip("/")
        if not rest.split("/", 1)[0]:
            # An ordinary http(s) path that happens to start with /ipfs/
            return None
        if parts.query:
            rest = f"{rest}?{parts.query}"
    else:
        return None

    rest = rest.split("#", 1)[0].lstrip("/")
    cid = rest.split("?", 1)[0].split("/", 1)[0]
    return rest if cid else ""


def ipfs_to_https_candidates(uri: str, gateways: Optional[Sequence[str]] = None) -> List[str]:
    """Every configured gateway URL for an IPFS reference, most reliable first"""
    path = ipfs_path(uri)
    if not path:
        return []
    return [base + path for base in _gateways(gateways)]


def normalize_url_to_candidates(raw: Optional[str], gateways: Optional[Sequence[str]] = None) -> List[str]:
    """
    Turn one raw URI into an ordered list of fetchable candidates.

    IPFS references expand to one URL per gateway. Anything else comes back
    trimmed as the single candidate, whatever its scheme; blank input gives
    an empty list.
    """
    if not raw or not isinstance(raw, str):
        return []
    s = raw.strip()
    if not s:
        return []

    path = ipfs_path(s)
    if path is None:
        return [s]
    return ipfs_to_https_candidates(s, gateways)


def normalize_url(raw: Optional[str], gateways: Optional[Sequence[str]] = None) -> Optional[str]:
    """First candidate of ``normalize_url_to_candidates`` or None"""
    candidates = normalize_url_to_candidates(raw, gateways)
    return candidates[0] if candidates else None
