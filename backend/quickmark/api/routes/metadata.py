import httpx
from fastapi import APIRouter, Depends, HTTPException, status

from ...dependencies import get_http_client
from ...schemas import MetadataRequest, PageMetadata
from ...services.metadata import fetch_metadata, normalize_url

router = APIRouter()


@router.post("/fetch-metadata", response_model=PageMetadata, summary="웹페이지 제목/설명/파비콘 수집")
async def fetch_page_metadata(
    payload: MetadataRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> PageMetadata:
    try:
        url = normalize_url(payload.url)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return await fetch_metadata(url, client)
