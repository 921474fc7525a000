from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.quickmark.main import app


def main() -> int:
    schema = app.openapi()
    paths = schema.get("paths", {})
    required = {
        "/api/health": {"get"},
        "/api/bookmarks": {"get", "post", "put", "delete"},
        "/api/bookmarks/export": {"get"},
        "/api/bookmarks/import": {"post"},
        "/api/fetch-metadata": {"post"},
        "/api/auth/simple-login": {"post"},
        "/api/auth/verify-admin": {"post"},
    }

    problems: list[str] = []
    for path, methods in required.items():
        if path not in paths:
            problems.append(f"OpenAPI 스펙에 {path} 경로가 없습니다.")
            continue
        missing = methods - set(paths[path])
        if missing:
            problems.append(f"{path} 경로에 {', '.join(sorted(missing))} 메서드가 없습니다.")

    if problems:
        for problem in problems:
            print(f"[오류] {problem}", file=sys.stderr)
        return 1

    print("OpenAPI 필수 경로 검증 완료")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
