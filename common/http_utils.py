"""외부 API 호출용 httpx 유틸 (재시도 없음, 1회 호출)"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from common.config import get_settings
from common.logger import get_logger

logger = get_logger("http_utils")

def _timeout(timeout: Optional[float]) -> float:
    return timeout if timeout is not None else get_settings().http_timeout_seconds


async def post_json(
    url: str,
    json: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> httpx.Response:
    """
    비동기 HTTP POST 유틸

    Args:
        url: 요청할 URL
        json: POST할 JSON 데이터 (없으면 본문 없이 전송)
        headers: 추가 헤더
        params: 쿼리 파라미터
        timeout: 연결/읽기 통합 타임아웃(초, 기본값: HTTP_TIMEOUT_SECONDS)

    Returns:
        httpx.Response: HTTP 응답 객체 (상태 코드 판단은 호출자 몫)

    Note:
        - httpx.AsyncClient를 context manager로 생성하여 커넥션 누수 방지
    """
    request_headers = {"Content-Type": "application/json"}
    if headers:
        request_headers.update(headers)
    try:
        async with httpx.AsyncClient(timeout=_timeout(timeout)) as client:
            return await client.post(url, json=json, headers=request_headers, params=params)
    except httpx.HTTPError as e:
        logger.error(f"HTTP POST 요청 실패: url={url}, error={str(e)}, error_type={type(e).__name__}")
        raise


def response_json(response: httpx.Response) -> Dict[str, Any]:
    """응답 본문을 dict로 파싱 (JSON이 아니거나 객체가 아니면 빈 dict)"""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


async def get_json(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> httpx.Response:
    """
    비동기 HTTP GET 유틸

    Args:
        url: 요청할 URL
        headers: 추가 헤더 (Authorization 등)
        timeout: 연결/읽기 통합 타임아웃(초)

    Returns:
        httpx.Response: HTTP 응답 객체
    """
    try:
        async with httpx.AsyncClient(timeout=_timeout(timeout)) as client:
            return await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"HTTP GET 요청 실패: url={url}, error={str(e)}, error_type={type(e).__name__}")
        raise
