"""
북마크 파일(JSON/HTML/CSV)을 데이터베이스로 가져오는 스크립트

사용법: python backend/scripts/import_bookmarks.py bookmarks.html [--keep-duplicates]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root))

from backend.quickmark.db.mongo import MongoConnectionManager
from backend.quickmark.services import bookmark_io
from backend.quickmark.services.bookmarks import add_bookmarks


async def import_file(path: Path, skip_duplicates: bool = True) -> int:
    fmt = bookmark_io.detect_format(path.name, None)
    if fmt is None:
        print(f"  ✗ 지원하지 않는 파일 형식: {path.name}")
        return 1

    try:
        raw_entries = bookmark_io.parse_import(path.read_bytes(), fmt)
    except bookmark_io.ImportFormatError as e:
        print(f"  ✗ 파일 해석 실패 - {e}")
        return 1

    entries, invalid = bookmark_io.clean_entries(raw_entries)
    if not entries:
        print("가져올 수 있는 북마크가 없습니다.")
        return 1

    db = MongoConnectionManager.get_database()
    try:
        imported, duplicates = await add_bookmarks(db, entries, skip_duplicates=skip_duplicates)
    finally:
        await MongoConnectionManager.close()

    print(f"  ✓ {imported}개 가져옴")
    print(f"  - 유효하지 않은 항목 {invalid}개, 중복 {duplicates}개 건너뜀")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="북마크 파일 가져오기")
    parser.add_argument("path", type=Path, help="JSON, HTML(Netscape) 또는 CSV 파일")
    parser.add_argument("--keep-duplicates", action="store_true", help="이미 저장된 URL도 추가")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"파일을 찾을 수 없습니다: {args.path}", file=sys.stderr)
        return 1
    return asyncio.run(import_file(args.path, skip_duplicates=not args.keep_duplicates))


if __name__ == "__main__":
    raise SystemExit(main())
