import logging
import os
import re
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.poolmanager import PoolManager
from urllib3.util.retry import Retry
from urllib3.util.ssl_ import create_urllib3_context

from lotto_pdf.config import HTTP_TIMEOUT, PDF_RETRIES, GameConfig
from lotto_pdf.errors import SourceError

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Accept": "application/pdf,application/octet-stream;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


# --- LEGACY SSL ADAPTER ---
# The Florida Lottery file server still negotiates legacy ciphers
class LegacyAdapter(HTTPAdapter):
    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        ctx = create_urllib3_context()
        ctx.load_default_certs()
        try:
            ctx.set_ciphers("DEFAULT@SECLEVEL=1")
        except Exception:
            # Fallback if system doesn't support SECLEVEL configuration
            ctx.set_ciphers("DEFAULT")

        self.poolmanager = PoolManager(
            num_pools=connections,
            maxsize=maxsize,
            block=block,
            ssl_context=ctx,
            **pool_kwargs,
        )


def get_session(retries: int = PDF_RETRIES) -> requests.Session:
    session = requests.Session()
    session.headers.update(HEADERS)
    retry = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
    )
    session.mount("https://", LegacyAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


def looks_like_pdf(data: bytes) -> bool:
    return len(data) > 1024 and data[:4] == b"%PDF"


def fetch_pdf(url: str, session: Optional[requests.Session] = None, timeout: float = HTTP_TIMEOUT) -> bytes:
    session = session or get_session()
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise SourceError(f"Could not fetch {url}: {e}") from e

    data = response.content
    if not looks_like_pdf(data):
        ctype = response.headers.get("content-type", "unknown")
        head = re.sub(r"\s+", " ", data[:200].decode("latin-1")).strip()
        raise SourceError(f"Not a PDF from {url} (content-type={ctype}). Head: {head!r}")
    return data


def discover_pdf_url(game: GameConfig, session: Optional[requests.Session] = None,
                     timeout: float = HTTP_TIMEOUT) -> Optional[str]:
    """Find the 'Winning Number History' PDF link on the game's page."""
    if not game.game_page_url:
        return None
    session = session or get_session()
    try:
        response = session.get(game.game_page_url, timeout=timeout, headers={"Accept": "text/html"})
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise SourceError(f"Could not load {game.game_page_url}: {e}") from e

    soup = BeautifulSoup(response.text, "html.parser")
    links = [a for a in soup.find_all("a", href=True) if ".pdf" in a["href"].lower()]
    for a in links:
        if re.search(r"winning\s+number", a.get_text(" ", strip=True), re.IGNORECASE):
            return urljoin(game.game_page_url, a["href"])
    for a in links:
        if "/exptkt/" in a["href"]:
            return urljoin(game.game_page_url, a["href"])
    return None


def load_pdf_bytes(game: GameConfig, local_path: Optional[str] = None, url: Optional[str] = None,
                   session: Optional[requests.Session] = None) -> bytes:
    """Local file, then explicit URL, then the game's default URL, then discovery."""
    if local_path:
        with open(os.path.expanduser(local_path), "rb") as f:
            return f.read()

    if url:
        return fetch_pdf(url, session=session)

    session = session or get_session()
    if game.pdf_url:
        try:
            return fetch_pdf(game.pdf_url, session=session)
        except SourceError as e:
            logger.warning("Default PDF URL failed for %s: %s", game.name, e)

    discovered = discover_pdf_url(game, session=session)
    if not discovered:
        raise SourceError(f"Could not discover the {game.name} PDF URL")
    logger.info("Discovered %s PDF at %s", game.name, discovered)
    return fetch_pdf(discovered, session=session)
