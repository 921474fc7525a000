"""북마크 가져오기/내보내기 (JSON, CSV, Netscape HTML)"""
from __future__ import annotations

import csv
import html
import io
import json
import logging
from datetime import date, datetime, timezone
from typing import Any

from bs4 import BeautifulSoup

from ..schemas.bookmarks import BookmarkOut, is_http_url

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "html")
CSV_FIELDS = ["id", "title", "url", "description", "favicon", "created_at"]
MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
    "html": "text/html; charset=utf-8",
}

_EXTENSIONS = {
    "json": "json",
    "html": "html",
    "htm": "html",
    "csv": "csv",
}

NETSCAPE_HEADER = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<!-- This is an automatically generated file.
     It will be read and overwritten.
     DO NOT EDIT! -->
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
"""


class ImportFormatError(ValueError):
    pass


def export_filename(fmt: str, today: date | None = None) -> str:
    return f"bookmarks-{(today or date.today()).isoformat()}.{fmt}"


def _serialize(bookmarks: list[dict]) -> list[dict[str, Any]]:
    return [BookmarkOut(**bookmark).model_dump(mode="json") for bookmark in bookmarks]


def export_json(bookmarks: list[dict]) -> str:
    return json.dumps(_serialize(bookmarks), ensure_ascii=False, indent=2)


def export_csv(bookmarks: list[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in _serialize(bookmarks):
        row["created_at"] = row.get("created_at") or ""
        writer.writerow(row)
    return buffer.getvalue()


def export_html(bookmarks: list[dict]) -> str:
    lines = [NETSCAPE_HEADER]
    for bookmark in bookmarks:
        created_at = bookmark.get("created_at") or datetime.now(timezone.utc)
        add_date = int(created_at.timestamp())
        lines.append(
            f'    <DT><A HREF="{html.escape(bookmark["url"])}" ADD_DATE="{add_date}" '
            f'ICON="{html.escape(bookmark.get("favicon") or "")}">{html.escape(bookmark["title"])}</A>\n'
        )
        if bookmark.get("description"):
            lines.append(f"    <DD>{html.escape(bookmark['description'])}\n")
    lines.append("</DL><p>\n")
    return "".join(lines)


def export_bookmarks(bookmarks: list[dict], fmt: str) -> str:
    if fmt == "csv":
        return export_csv(bookmarks)
    if fmt == "html":
        return export_html(bookmarks)
    return export_json(bookmarks)


def detect_format(filename: str | None, content_type: str | None) -> str | None:
    """파일 확장자 우선, 없으면 Content-Type으로 판별"""
    if filename and "." in filename:
        fmt = _EXTENSIONS.get(filename.rsplit(".", 1)[-1].lower())
        if fmt:
            return fmt
    content_type = (content_type or "").lower()
    if "json" in content_type:
        return "json"
    if "html" in content_type:
        return "html"
    if "csv" in content_type:
        return "csv"
    return None


def _parse_created_at(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_json(text: str) -> list[dict]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportFormatError("JSON 파일을 해석할 수 없습니다.") from exc
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        data = data["data"]
    if not isinstance(data, list):
        raise ImportFormatError("JSON 파일은 북마크 배열이어야 합니다.")
    return [item for item in data if isinstance(item, dict)]


def parse_html(text: str) -> list[dict]:
    soup = BeautifulSoup(text, "html.parser")
    entries: list[dict] = []
    for anchor in soup.find_all("a", href=True):
        description = ""
        sibling = anchor.find_next_sibling()
        if sibling is not None and sibling.name == "dd":
            # html.parser는 <DD>를 닫지 않으므로 직계 텍스트만 사용
            description = (sibling.find(string=True, recursive=False) or "").strip()
        entries.append(
            {
                "title": anchor.get_text(" ", strip=True),
                "url": anchor["href"].strip(),
                "description": description,
                "favicon": (anchor.get("icon") or "").strip(),
                "created_at": anchor.get("add_date"),
            }
        )
    return entries


def parse_csv(text: str) -> list[dict]:
    reader = csv.DictReader(io.StringIO(text))
    fields = {name.strip().lower() for name in reader.fieldnames or []}
    if not {"title", "url"} <= fields:
        raise ImportFormatError("CSV 파일에 title, url 열이 필요합니다.")
    return [{(key or "").strip().lower(): value for key, value in row.items()} for row in reader]


def parse_import(content: bytes, fmt: str) -> list[dict]:
    text = content.decode("utf-8-sig", errors="replace")
    if fmt == "json":
        return parse_json(text)
    if fmt == "html":
        return parse_html(text)
    if fmt == "csv":
        return parse_csv(text)
    raise ImportFormatError("지원하지 않는 파일 형식입니다. JSON, HTML 또는 CSV 파일을 사용하세요.")


def clean_entries(raw_entries: list[dict]) -> tuple[list[dict], int]:
    """제목과 http(s) URL이 있는 항목만 남긴다. (유효 항목, 무효 개수) 반환"""
    valid: list[dict] = []
    invalid = 0
    for raw in raw_entries:
        title = str(raw.get("title") or "").strip()
        url = str(raw.get("url") or "").strip()
        if not title or not url or not is_http_url(url):
            invalid += 1
            continue
        favicon = str(raw.get("favicon") or "").strip()
        valid.append(
            {
                "title": title[:500],
                "url": url,
                "description": str(raw.get("description") or "").strip(),
                "favicon": favicon if is_http_url(favicon) else "",
                "created_at": _parse_created_at(raw.get("created_at")),
            }
        )
    if invalid:
        logger.info("가져오기에서 유효하지 않은 항목 %d개를 건너뜁니다.", invalid)
    return valid, invalid
