# opendraw/services/common/errors.py
import logging
from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse
from opendraw.services.common.cors import add_cors_headers

logger = logging.getLogger("opendraw.errors")


def error_response(status_code: int, message: str) -> JSONResponse:
    """{"error": message} 형태의 JSON 에러 응답 (CORS 포함)"""
    response = JSONResponse(status_code=status_code, content={"error": message})
    add_cors_headers(response.headers)
    return response


def not_found_response() -> PlainTextResponse:
    response = PlainTextResponse("Not Found", status_code=404)
    add_cors_headers(response.headers)
    return response


def internal_error_response(exc: Exception) -> JSONResponse:
    return error_response(500, f"Internal Server Error: {exc}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # 라우트 밖으로 새어 나온 예외도 500 + CORS 로 응답
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return internal_error_response(exc)
