# opendraw/services/common/cors.py
from typing import MutableMapping
from fastapi import Response

# 프리플라이트(OPTIONS) 응답 헤더
PREFLIGHT_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
    "Access-Control-Max-Age": "86400",  # 24h
}

# 실제 응답(성공/에러 모두)에 붙는 헤더
RESPONSE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
}


def preflight_response() -> Response:
    return Response(status_code=204, headers=PREFLIGHT_CORS_HEADERS)


def add_cors_headers(headers: MutableMapping[str, str]) -> None:
    """대소문자 무시 헤더 맵에 CORS 헤더를 덮어씀 (여러 번 호출해도 결과 동일)"""
    for key, value in RESPONSE_CORS_HEADERS.items():
        headers[key] = value
