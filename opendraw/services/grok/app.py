# opendraw/services/grok/app.py
from fastapi import FastAPI, Request
from opendraw.services.common.config import GROK_API_HOST
from opendraw.services.common.errors import unhandled_exception_handler
from opendraw.services.common.logging_config import setup_logging
from opendraw.services.common.proxy import ProxyProfile, dispatch

setup_logging()

# xAI 이미지 생성 파라미터 ('quality', 'size', 'style' 은 xAI 가 지원하지 않음)
PROFILE = ProxyProfile(
    upstream_host=GROK_API_HOST,
    upstream_label="xAI API",
    api_prefix="/v1/",
    allowed_params=("model", "prompt", "n", "response_format"),
)

app = FastAPI(title="Grok OpenDraw Proxy")
app.add_exception_handler(Exception, unhandled_exception_handler)


async def proxy(request: Request):
    """/v1/* 는 xAI 로 전달, 이미지 생성 요청만 파라미터 정리"""
    return await dispatch(request, PROFILE)


# methods=None: 모든 메서드를 dispatch 로 보냄 (405 없음)
app.router.add_route("/{path:path}", proxy, include_in_schema=False)
