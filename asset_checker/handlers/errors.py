"""
服务层异常 -> HTTP 响应
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from asset_checker.services.errors import ConflictError, NotFoundError, ServiceError, TagValidationError

STATUS_CODES = {
    NotFoundError: 404,
    ConflictError: 409,
    TagValidationError: 400,
}


def status_code_for(exc: ServiceError) -> int:
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return 500


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} 失败: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {code}: {exc.message}")
    return JSONResponse(status_code=code, content={"error": exc.message})


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    # 枚举转换失败等参数问题
    logger.info(f"{request.method} {request.url.path} -> 400: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} 未处理的异常: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
