"""Normalize indexing API records to canonical cards"""

import math
import re
from typing import Dict, Any, Iterable, Optional, List
from urllib.parse import quote

from loguru import logger
from .ipfs import normalize_url, normalize_url_to_candidates
from .models import (
    NftAttribute,
    NftCard,
    Chain,
)

_HEX_TOKEN_ID_RE = re.compile(r'^0x[0-9a-fA-F]+$')
_DECIMAL_TOKEN_ID_RE = re.compile(r'^[0-9]+$')
_ADDRESS_RE = re.compile(r'^0x[0-9a-fA-F]{40}$')

# Formats that cannot be played as animation/video
_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".avif", ".svg", ".bmp", ".ico")
_DOCUMENT_EXTENSIONS = (".html", ".htm", ".json")
_MODEL_EXTENSIONS = (".glb", ".gltf", ".obj", ".fbx", ".usdz")
_NON_ANIMATION_EXTENSIONS = _IMAGE_EXTENSIONS + _DOCUMENT_EXTENSIONS + _MODEL_EXTENSIONS
_NON_ANIMATION_MIME_PREFIXES = ("image/", "model/")
_NON_ANIMATION_MIME_TYPES = {"text/html", "application/xhtml+xml", "application/json"}

_ARTIST_METADATA_KEYS = (
    "artist", "artist_name", "artistName",
    "creator", "creator_name", "creatorName",
    "author", "author_name", "authorName",
)
_ARTIST_PROPERTY_KEYS = ("artist", "creator", "author")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _first_present(*values: Any) -> Any:
    """First value that is not None"""
    for value in values:
        if value is not None:
            return value
    return None


def _pick_string(*values: Any) -> Optional[str]:
    """First value that is a non-blank string, trimmed"""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def normalize_token_id(value: Any) -> Optional[str]:
    """
    Canonicalize a token id.

    ``0x``-prefixed hex becomes decimal, decimal strings lose leading zeros,
    integers become their decimal string and anything else is returned
    trimmed. Idempotent. Returns None when there is no usable value.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return str(int(value)) if value.is_integer() else str(value)
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    if _HEX_TOKEN_ID_RE.match(s):
        try:
            return str(int(s, 16))
        except ValueError:
            # Beyond the interpreter's int-to-str digit limit
            return s
    if _DECIMAL_TOKEN_ID_RE.match(s):
        return s.lstrip("0") or "0"
    return s


def normalize_url_candidates(*values: Any) -> List[str]:
    """Expand every source through the URL canonicalizer, dedupe, keep first-seen order"""
    out: List[str] = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            continue
        for candidate in normalize_url_to_candidates(value):
            if candidate and candidate not in seen:
                seen.add(candidate)
                out.append(candidate)
    return out


def is_animation_candidate(url: str) -> bool:
    """False for URLs that are obviously images, documents or 3D models"""
    u = url.strip().lower()
    if not u:
        return False
    if u.startswith("data:"):
        return u.startswith("data:video/")
    path = re.split(r"[?#]", u, maxsplit=1)[0]
    return not path.endswith(_NON_ANIMATION_EXTENSIONS)


def is_animation_mime_type(mime: Optional[str]) -> bool:
    """False when a declared MIME type rules out animation playback"""
    if not mime:
        return True
    m = mime.split(";", 1)[0].strip().lower()
    if m.startswith(_NON_ANIMATION_MIME_PREFIXES):
        return False
    return m not in _NON_ANIMATION_MIME_TYPES


def normalize_artist_name(raw: Any) -> Optional[str]:
    """Artist label, rejecting wallet addresses"""
    s = _pick_string(raw)
    if not s or _ADDRESS_RE.match(s):
        return None
    return s


def normalize_attributes(raw: Any) -> List[NftAttribute]:
    """Attributes in source (display) order; non-object entries are skipped"""
    attributes = []
    for entry in _as_list(raw):
        if not isinstance(entry, dict):
            continue
        value = entry.get("value")
        if isinstance(value, float) and not math.isfinite(value):
            value = None
        attributes.append(NftAttribute(
            trait_type=_pick_string(entry.get("trait_type"), entry.get("traitType")),
            display_type=_pick_string(entry.get("display_type"), entry.get("displayType")),
            value=value,
        ))
    return attributes


def extract_artist_from_attributes(attributes: Iterable[NftAttribute]) -> Optional[str]:
    for attr in attributes:
        trait = (attr.trait_type or "").strip().lower()
        if not trait:
            continue
        if "artist" in trait or "creator" in trait or "author" in trait:
            picked = normalize_artist_name(attr.value)
            if picked:
                return picked
    return None


def build_explorer_url(chain: Chain, contract_address: str, token_id: str) -> str:
    base = Chain(chain).explorer_base_url
    # RFC 2396 mark characters stay literal
    token = quote(token_id, safe="!*'()")
    return f"{base}/token/{contract_address.lower()}?a={token}"


def build_card_id(chain: Chain, contract_address: str, token_id: str) -> str:
    return f"{Chain(chain).value}:{contract_address.lower()}:{token_id}"


class Normalizer:
    """Convert indexing API records to canonical cards"""

    @staticmethod
    def normalize_alchemy_nft(data: Any, chain: Chain) -> Optional[NftCard]:
        """Normalize one Alchemy ``ownedNfts`` entry; None when it has no contract address"""
        if not isinstance(data, dict):
            return None

        contract = _as_dict(data.get("contract"))
        contract_address = _pick_string(
            contract.get("address"),
            data.get("contractAddress"),
            data.get("contract_address"),
        )
        if not contract_address:
            return None
        contract_address = contract_address.lower()

        token_id = normalize_token_id(_first_present(data.get("tokenId"), data.get("token_id"))) or "0"

        raw = _as_dict(data.get("raw"))
        metadata: Dict[str, Any] = {}
        for candidate in (raw.get("metadata"), data.get("rawMetadata"), data.get("metadata")):
            if isinstance(candidate, dict):
                metadata = candidate
                break
        properties = _as_dict(metadata.get("properties"))

        image = _as_dict(data.get("image"))
        animation = _as_dict(data.get("animation"))

        collection_name = _pick_string(
            contract.get("name"),
            contract.get("symbol"),
            _as_dict(contract.get("openSeaMetadata")).get("collectionName"),
        )
        token_name = _pick_string(data.get("name"), metadata.get("name"), metadata.get("title")) or f"#{token_id}"
        description = _pick_string(data.get("description"), metadata.get("description"))

        image_candidates = normalize_url_candidates(
            image.get("cachedUrl"),
            image.get("thumbnailUrl"),
            image.get("pngUrl"),
            image.get("originalUrl"),
            metadata.get("image"),
            metadata.get("image_url"),
            metadata.get("imageUrl"),
        )

        animation_candidates: List[str] = []
        declared_mime = _pick_string(
            animation.get("contentType"),
            metadata.get("animation_mime_type"),
            metadata.get("animationMimeType"),
            metadata.get("mimeType"),
        )
        if is_animation_mime_type(declared_mime):
            animation_candidates = [
                url for url in normalize_url_candidates(
                    animation.get("cachedUrl"),
                    animation.get("thumbnailUrl"),
                    animation.get("originalUrl"),
                    metadata.get("animation_url"),
                    metadata.get("animationUrl"),
                    metadata.get("animation"),
                    data.get("animationUrl"),
                    data.get("animation_url"),
                )
                if is_animation_candidate(url)
            ]

        token_uri = _first_present(data.get("tokenUri"), data.get("token_uri"))
        if isinstance(token_uri, dict):
            # Older payloads nest the token URI
            token_uri = _pick_string(token_uri.get("gateway"), token_uri.get("raw"))
        external_url = normalize_url(_pick_string(
            metadata.get("external_url"),
            metadata.get("externalUrl"),
            token_uri,
        ))

        attributes = normalize_attributes(_first_present(metadata.get("attributes"), metadata.get("traits")))

        artist = normalize_artist_name(_pick_string(
            *(metadata.get(key) for key in _ARTIST_METADATA_KEYS),
            *(properties.get(key) for key in _ARTIST_PROPERTY_KEYS),
        )) or extract_artist_from_attributes(attributes)

        return NftCard(
            id=build_card_id(chain, contract_address, token_id),
            chain=chain,
            contract_address=contract_address,
            token_id=token_id,
            collection_name=collection_name,
            token_name=token_name,
            description=description,
            artist=artist,
            image_url=image_candidates[0] if image_candidates else None,
            image_fallback_urls=image_candidates[1:],
            animation_url=animation_candidates[0] if animation_candidates else None,
            animation_fallback_urls=animation_candidates[1:],
            attributes=attributes,
            external_url=external_url,
            explorer_url=build_explorer_url(chain, contract_address, token_id),
        )

    @staticmethod
    def normalize_owned_nfts(chain: Chain, records: Iterable[Any]) -> List[NftCard]:
        """Normalize records in input order, silently dropping those without a contract"""
        cards: List[NftCard] = []
        dropped = 0
        for record in records:
            card = Normalizer.normalize_alchemy_nft(record, chain)
            if card is None:
                dropped += 1
                continue
            cards.append(card)
        if dropped:
            logger.debug(f"Skipped {dropped} records without a contract address on {Chain(chain).value}")
        return cards


normalize_owned_nfts = Normalizer.normalize_owned_nfts
