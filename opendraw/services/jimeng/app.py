# opendraw/services/jimeng/app.py
from fastapi import FastAPI, Request
from opendraw.services.common.config import JIMENG_API_HOST
from opendraw.services.common.errors import unhandled_exception_handler
from opendraw.services.common.logging_config import setup_logging
from opendraw.services.common.proxy import ProxyProfile, dispatch

setup_logging()

PROFILE = ProxyProfile(
    upstream_host=JIMENG_API_HOST,
    upstream_label="API",
    allowed_params=("model", "prompt", "negativePrompt", "width", "height", "sample_strength"),
    required_params=("prompt",),
    defaults={
        "model": "jimeng-3.0",  # jimeng-2.1 / jimeng-2.0-pro / jimeng-2.0 / jimeng-1.4 / jimeng-xl-pro
        "negativePrompt": "",
        "width": 1024,
        "height": 1024,
        "sample_strength": 0.5,  # 0~1
    },
)

app = FastAPI(title="Jimeng OpenDraw Proxy")
app.add_exception_handler(Exception, unhandled_exception_handler)


async def proxy(request: Request):
    # POST /v1/images/generations 외에는 전부 404
    return await dispatch(request, PROFILE)


# methods=None: 모든 메서드를 dispatch 로 보냄 (405 없음)
app.router.add_route("/{path:path}", proxy, include_in_schema=False)
