# opendraw/services/common/proxy.py
from __future__ import annotations
import json, logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple
from urllib.parse import quote
import anyio
import httpx
from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from opendraw.services.common.config import UPSTREAM_TIMEOUT
from opendraw.services.common.cors import add_cors_headers, preflight_response
from opendraw.services.common.errors import error_response, internal_error_response, not_found_response

logger = logging.getLogger("opendraw.proxy")

IMAGE_GENERATION_PATH = "/v1/images/generations"

# 엣지(Cloudflare)가 붙이는 클라이언트 정보 헤더: 업스트림으로 보내지 않음
EDGE_HEADERS = ("cf-connecting-ip", "cf-ipcountry", "cf-ray", "cf-visitor")
# 본문을 다시 프레이밍하므로 httpx 가 새로 계산
REQUEST_FRAMING_HEADERS = ("content-length", "transfer-encoding")
# 스트리밍 응답은 ASGI 서버가 프레이밍
RESPONSE_HOP_HEADERS = ("connection", "keep-alive", "transfer-encoding", "content-length")


class ProxyProfile(BaseModel):
    """배포(변형)별 설정. api_prefix 가 None 이면 이미지 생성 경로만 프록시"""
    model_config = ConfigDict(frozen=True)

    upstream_host: str
    upstream_label: str = "API"
    image_path: str = IMAGE_GENERATION_PATH
    api_prefix: Optional[str] = None
    allowed_params: Tuple[str, ...]
    required_params: Tuple[str, ...] = ()
    defaults: Dict[str, Any] = Field(default_factory=dict)
    force_json_response: bool = True

    @property
    def passthrough(self) -> bool:
        return self.api_prefix is not None


def raw_request_path(request: Request) -> str:
    """퍼센트 인코딩이 남아 있는 원본 경로 (%3F, %23, %2F 를 그대로 유지)"""
    raw_path = request.scope.get("raw_path")
    if raw_path is None:
        return quote(request.url.path)
    return raw_path.decode("latin-1")


def build_target_url(request: Request, upstream_host: str) -> httpx.URL:
    # 쿼리 문자열은 파싱하지 않고 그대로 이어 붙임: 순서, 중복 키, 빈 값 유지
    url = f"https://{upstream_host}{raw_request_path(request)}"
    query_string = request.scope.get("query_string", b"")
    if query_string:
        url = f"{url}?{query_string.decode('latin-1')}"
    return httpx.URL(url)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_json_body(body: bytes) -> Any:
    # NaN / Infinity 는 JSON 이 아님
    return json.loads(body, parse_constant=_reject_constant)


def filter_params(body: Dict[str, Any], allowed: Tuple[str, ...]) -> Dict[str, Any]:
    """허용 목록에 있는 키만 복사. 그 외 키는 조용히 버림"""
    return {name: body[name] for name in allowed if name in body}


def apply_defaults(params: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """입력에 키 자체가 없을 때만 기본값을 채움 (0, "" 등 falsy 값은 유지)"""
    merged = dict(params)
    for name, value in defaults.items():
        if name not in merged:
            merged[name] = value
    return merged


async def _send(method: str, url: httpx.URL, headers: httpx.Headers | Dict[str, str],
                **body: Any) -> Tuple[httpx.AsyncClient, httpx.Response]:
    """업스트림 호출. 응답 본문은 아직 읽지 않은 상태로 client 와 함께 반환"""
    client = httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT)
    try:
        upstream = await client.send(client.build_request(method, url, headers=headers, **body), stream=True)
    except BaseException:
        await client.aclose()
        raise
    return client, upstream


async def _stream_body(client: httpx.AsyncClient, upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    finally:
        # 클라이언트가 중간에 끊겨 취소되더라도 연결은 닫음
        with anyio.CancelScope(shield=True):
            await upstream.aclose()
            await client.aclose()


def relay_response(client: httpx.AsyncClient, upstream: httpx.Response, force_json: bool) -> StreamingResponse:
    """업스트림 상태/헤더/본문을 그대로 흘려보내고 CORS 헤더만 덧씌움"""
    headers = httpx.Headers(upstream.headers)
    for name in RESPONSE_HOP_HEADERS:
        headers.pop(name, None)
    add_cors_headers(headers)
    if force_json:
        headers["Content-Type"] = "application/json"

    response = StreamingResponse(_stream_body(client, upstream), status_code=upstream.status_code)
    response.raw_headers = [(key.lower(), value) for key, value in headers.raw]
    return response


async def handle_image_generation(request: Request, target_url: httpx.URL, profile: ProxyProfile) -> Response:
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type:
        return error_response(400, "Unsupported Content-Type. Please use application/json")

    # Starlette 는 읽은 본문을 request 에 캐시하므로 이후에도 다시 읽을 수 있음
    try:
        original_body = parse_json_body(await request.body())
    except ValueError:
        return error_response(400, "Invalid JSON body")
    if not isinstance(original_body, dict):
        return error_response(400, "JSON body must be an object")

    for name in profile.required_params:
        if not original_body.get(name):
            return error_response(400, f"Missing required parameter: {name}")

    payload = apply_defaults(filter_params(original_body, profile.allowed_params), profile.defaults)
    headers = {
        "Content-Type": "application/json",
        # 인증은 업스트림이 판단
        "Authorization": request.headers.get("authorization", ""),
    }

    try:
        client, upstream = await _send("POST", target_url, headers, json=payload)
    except Exception as exc:
        logger.exception("Error fetching from %s (%s)", profile.upstream_label, target_url)
        return error_response(502, f"Error fetching from {profile.upstream_label}: {exc}")

    logger.debug("POST %s -> %s", target_url, upstream.status_code)
    return relay_response(client, upstream, force_json=profile.force_json_response)


async def forward_passthrough(request: Request, target_url: httpx.URL, profile: ProxyProfile) -> Response:
    headers = httpx.Headers(request.headers.raw)
    headers["Host"] = profile.upstream_host
    for name in EDGE_HEADERS + REQUEST_FRAMING_HEADERS:
        headers.pop(name, None)

    # GET/HEAD 는 본문 없음
    body: Dict[str, Any] = {}
    if request.method not in ("GET", "HEAD"):
        body["content"] = await request.body()

    try:
        client, upstream = await _send(request.method, target_url, headers, **body)
    except httpx.RequestError as exc:
        logger.exception("Error fetching from %s (%s)", profile.upstream_label, target_url)
        return error_response(502, f"Error fetching from {profile.upstream_label}: {exc}")

    logger.debug("%s %s -> %s", request.method, target_url, upstream.status_code)
    return relay_response(client, upstream, force_json=False)


async def dispatch(request: Request, profile: ProxyProfile) -> Response:
    """인바운드 요청 하나를 처리해 응답 하나를 돌려주는 진입점"""
    if request.method == "OPTIONS":
        return preflight_response()

    try:
        # 디코딩된 경로로 비교 (request.url.path 는 %3F 를 쿼리로 다시 쪼갬)
        path = request.scope["path"]
        if profile.passthrough and not path.startswith(profile.api_prefix):
            return not_found_response()

        target_url = build_target_url(request, profile.upstream_host)
        if path == profile.image_path and request.method == "POST":
            return await handle_image_generation(request, target_url, profile)
        if not profile.passthrough:
            return not_found_response()
        return await forward_passthrough(request, target_url, profile)
    except Exception as exc:
        logger.exception("Proxy error on %s %s", request.method, request.scope.get("path"))
        return internal_error_response(exc)
