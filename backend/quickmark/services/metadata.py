"""웹페이지 메타데이터 수집 서비스 (제목/설명/파비콘)

최선 노력 방식: 요청 실패, 타임아웃, 오류 응답이어도 예외를 올리지 않고
호스트명만 제목으로 담은 기본 결과를 반환한다.
"""
from __future__ import annotations

import ipaddress
import logging
import re
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from ..core.config import settings
from ..schemas.bookmarks import is_http_url
from ..schemas.metadata import PageMetadata

logger = logging.getLogger(__name__)

# 실제 브라우저와 유사한 요청 헤더
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
    "Upgrade-Insecure-Requests": "1",
}

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "metadata.google.internal",
    "metadata.google.com",
}

MIN_PARAGRAPH_LENGTH = 40
CHARSET_SNIFF_BYTES = 1024

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_META_CHARSET_RE = re.compile(rb"<meta[^>]+charset=[\"']?([\w\-]+)", re.IGNORECASE)


def normalize_url(raw: str) -> str:
    """스킴이 없으면 https://를 붙이고 http(s) URL인지 검사"""
    url = raw.strip()
    if not url:
        raise ValueError("URL이 필요합니다.")
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"
    if not is_http_url(url):
        raise ValueError("올바르지 않은 URL 형식입니다.")
    return url


def hostname_of(url: str) -> str:
    return urlparse(url).hostname or url


def degraded_metadata(url: str) -> PageMetadata:
    return PageMetadata(title=hostname_of(url), description="", favicon="", url=url)


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def is_private_host(host: str) -> bool:
    host = host.lower().rstrip(".")
    if not host or host in BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


def favicon_service_url(page_url: str) -> str:
    domain = urlparse(page_url).hostname or ""
    if not domain or domain == "localhost" or _is_ip_literal(domain):
        return ""
    return settings.favicon_service_template.format(domain=domain)


def fallback_favicon(page_url: str) -> str:
    if settings.favicon_fallback == "service":
        return favicon_service_url(page_url)
    parsed = urlparse(page_url)
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}/favicon.ico"


def _clean(text: str | None) -> str:
    return " ".join(text.split()) if text else ""


def _meta_content(soup: BeautifulSoup, key: str) -> str:
    # og:*는 property, twitter:*는 name을 주로 쓰지만 사이트마다 섞여 있다
    pattern = re.compile(f"^{re.escape(key)}$", re.IGNORECASE)
    for attr in ("name", "property"):
        tag = soup.find("meta", attrs={attr: pattern})
        if tag is not None:
            content = _clean(tag.get("content"))
            if content:
                return content
    return ""


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is not None:
        title = _clean(soup.title.get_text())
        if title:
            return title
    return _meta_content(soup, "og:title") or _meta_content(soup, "twitter:title")


def extract_description(soup: BeautifulSoup, *, paragraph_fallback: bool, max_length: int) -> str:
    description = (
        _meta_content(soup, "description")
        or _meta_content(soup, "og:description")
        or _meta_content(soup, "twitter:description")
    )
    if not description and paragraph_fallback:
        for paragraph in soup.find_all("p"):
            text = _clean(paragraph.get_text(" "))
            if len(text) >= MIN_PARAGRAPH_LENGTH:
                description = text
                break
    return description[:max_length].strip()


def extract_favicon(soup: BeautifulSoup, base_url: str) -> str:
    """<link rel="icon"> 우선, 없으면 apple-touch-icon. 절대 URL로 변환"""
    primary = ""
    secondary = ""
    for link in soup.find_all("link", href=True):
        href = link["href"].strip()
        if not href:
            continue
        rels = link.get("rel") or []
        if isinstance(rels, str):
            rels = rels.split()
        rels = [rel.lower() for rel in rels]
        if "icon" in rels and not primary:
            primary = href
        elif any(rel.startswith("apple-touch-icon") for rel in rels) and not secondary:
            secondary = href
    href = primary or secondary
    return urljoin(base_url, href) if href else ""


def extract_metadata(html: str, url: str, final_url: str | None = None) -> PageMetadata:
    page_url = final_url or url
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(soup) or hostname_of(url)
    description = extract_description(
        soup,
        paragraph_fallback=settings.metadata_paragraph_fallback,
        max_length=settings.metadata_description_max_length,
    )
    favicon = extract_favicon(soup, page_url) or fallback_favicon(page_url)
    return PageMetadata(title=title, description=description, favicon=favicon, url=url)


def _decode(body: bytes, response: httpx.Response) -> str:
    encoding = response.charset_encoding
    if not encoding:
        match = _META_CHARSET_RE.search(body[:CHARSET_SNIFF_BYTES])
        encoding = match.group(1).decode("ascii", errors="ignore") if match else "utf-8"
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


async def _read_limited(response: httpx.Response, limit: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    async for chunk in response.aiter_bytes():
        chunks.append(chunk)
        total += len(chunk)
        if total >= limit:
            break
    return b"".join(chunks)[:limit]


def _blocked(url: str) -> bool:
    host = urlparse(url).hostname or ""
    if settings.metadata_allow_private_hosts or not is_private_host(host):
        return False
    logger.warning("내부 주소에 대한 메타데이터 요청을 차단했습니다: %s", host)
    return True


async def fetch_metadata(url: str, client: httpx.AsyncClient) -> PageMetadata:
    """리다이렉트는 직접 따라가며 매 단계마다 내부 주소 여부를 검사"""
    current = url
    try:
        for _ in range(settings.metadata_max_redirects + 1):
            if _blocked(current):
                return degraded_metadata(url)
            async with client.stream(
                "GET",
                current,
                headers=BROWSER_HEADERS,
                timeout=settings.metadata_timeout_seconds,
                follow_redirects=False,
            ) as response:
                if response.has_redirect_location and response.next_request is not None:
                    current = str(response.next_request.url)
                    if not is_http_url(current):
                        return degraded_metadata(url)
                    continue
                response.raise_for_status()
                final_url = str(response.url)
                content_type = response.headers.get("content-type", "").lower()
                if content_type and "html" not in content_type:
                    return PageMetadata(title=hostname_of(url), favicon=fallback_favicon(final_url), url=url)
                body = await _read_limited(response, settings.metadata_max_bytes)
                html = _decode(body, response)
            return extract_metadata(html, url, final_url)
        logger.warning("리다이렉트 횟수 초과, 기본 정보 반환: %s", url)
        return degraded_metadata(url)
    except httpx.HTTPError as exc:
        logger.warning("메타데이터 수집 실패, 기본 정보 반환: %s (%s)", url, exc)
        return degraded_metadata(url)
    except Exception as exc:
        logger.warning("메타데이터 파싱 중 오류, 기본 정보 반환: %s (%s)", url, exc)
        return degraded_metadata(url)
