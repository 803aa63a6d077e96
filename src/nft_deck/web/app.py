"""FastAPI endpoints for wallet cards and the media relay"""

from typing import Optional
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger

from ..config import config
from ..deck import NftDeck
from ..exceptions import ConfigurationError, InvalidWalletError, RelayError, UpstreamHTTPError
from ..models import Chain
from ..relay import MediaRelay, RELAY_RESPONSE_HEADERS
from ..utils import parse_hide_spam

app = FastAPI(title="NFT Deck", version="1.0.0")

# Security: Configure CORS properly
ALLOWED_ORIGINS = config.cors_origins
if ALLOWED_ORIGINS == ["*"]:
    logger.warning("CORS is set to allow all origins. Consider restricting in production.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses"""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


_deck: Optional[NftDeck] = None
_media_relay: Optional[MediaRelay] = None


def get_deck() -> NftDeck:
    global _deck
    if _deck is None:
        _deck = NftDeck()
    return _deck


def get_media_relay() -> MediaRelay:
    global _media_relay
    if _media_relay is None:
        _media_relay = MediaRelay()
    return _media_relay


def upstream_error_detail(err: UpstreamHTTPError) -> str:
    """Client-facing message for an indexing API status; never includes the upstream body"""
    if err.status in (401, 403):
        return "Alchemy authentication failed. Check your ALCHEMY_KEY and try again."
    if err.status == 429:
        return "Rate limited by provider. Please try again soon."
    if err.status == 404:
        return "Alchemy endpoint not found for this network. This network may not be supported for NFT indexing."
    return "Upstream provider error. Please try again soon."


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/nfts")
async def get_nfts(
    chain: Optional[str] = Query(None),
    wallet: Optional[str] = Query(None),
    hide_spam: Optional[str] = Query(None, alias="hideSpam"),
    deck: NftDeck = Depends(get_deck),
):
    """Cards for every NFT a wallet holds on one chain"""
    try:
        chain_enum = Chain(chain)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid 'chain'. Expected one of: {', '.join(c.value for c in Chain)}.",
        )

    if wallet is None:
        raise HTTPException(status_code=400, detail="Missing required query param 'wallet'.")
    wallet_input = wallet.strip()
    if not wallet_input:
        raise HTTPException(status_code=400, detail="Wallet input cannot be empty.")

    try:
        response = await deck.get_cards(chain_enum, wallet_input, hide_spam=parse_hide_spam(hide_spam))
        return JSONResponse(content=response.to_payload())
    except InvalidWalletError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=e.hint)
    except UpstreamHTTPError as e:
        logger.error(f"Indexing API error for {wallet_input} on {chain_enum.value}: {e.status}")
        raise HTTPException(status_code=502, detail=upstream_error_detail(e))
    except Exception as e:
        logger.error(f"Error fetching cards for {wallet_input} on {chain_enum.value}: {type(e).__name__}")
        raise HTTPException(status_code=502, detail="Upstream provider error. Please try again soon.")


@app.get("/api/media")
async def relay_media(
    url: Optional[str] = Query(None),
    u: Optional[str] = Query(None),
    relay: MediaRelay = Depends(get_media_relay),
):
    """Fetch remote media through the SSRF-guarded relay"""
    target = url if url is not None else u
    if not target:
        raise HTTPException(status_code=400, detail="Missing required query param 'url'.")

    try:
        media = await relay.fetch(target)
    except RelayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return Response(
        content=media.body,
        status_code=200,
        media_type=media.content_type,
        headers=dict(RELAY_RESPONSE_HEADERS),
    )
