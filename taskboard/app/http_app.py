from __future__ import annotations
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from taskboard.config.settings import Settings, get_settings
from taskboard.app.routers.boards import router as boards_router
from taskboard.core.external_services import ConnectionState
from taskboard.core.logger import setup_logging
from taskboard.schemas.responses import Result
from taskboard.services.realtime.factory import RealtimeServices, build_realtime_services

logger = setup_logging()


def create_app(settings: Optional[Settings] = None, realtime: Optional[RealtimeServices] = None) -> FastAPI:
    """构建 FastAPI 应用；测试可传入预先构建的实时组件"""
    s = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        if getattr(app.state, "realtime", None) is None:
            app.state.realtime = build_realtime_services(s)
        yield
        # 关闭时释放 Redis 连接
        try:
            app.state.realtime.close()
            logger.info("实时更新连接已关闭")
        except Exception as e:
            logger.error(f"关闭实时更新连接时出错: {e}")

    app = FastAPI(lifespan=lifespan)
    app.state.realtime = realtime
    app.add_middleware(
        CORSMiddleware,
        allow_origins=s.cors_allow_origins,
        allow_credentials=s.cors_allow_credentials,
        allow_methods=s.cors_allow_methods,
        allow_headers=s.cors_allow_headers,
    )
    app.include_router(boards_router)

    @app.exception_handler(HTTPException)
    async def _http_exc_handler(request: Request, exc: HTTPException):
        msg = str(getattr(exc, "detail", "")) or str(exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=Result.error(message=msg, code=exc.status_code, data={}).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=Result.error(message="参数校验错误", code=422, data={"errors": exc.errors(), "path": request.url.path}).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def _general_exc_handler(request: Request, exc: Exception):
        logger.error(f"未处理异常 {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=Result.error(message="服务器内部错误", code=500, data={"error": str(exc), "path": request.url.path}).model_dump(),
        )

    @app.get("/v1/health", response_model=Result)
    def health() -> Result:
        return Result.ok({"status": "ok"})

    @app.get("/v1/health/redis", response_model=Result)
    def health_redis(request: Request):
        """Redis健康检查端点（FAILED 为终态，不会触发重连）"""
        services: Optional[RealtimeServices] = getattr(request.app.state, "realtime", None)
        if services is None:
            return JSONResponse(status_code=503, content=Result.unavailable("实时更新组件尚未初始化").model_dump())
        services.connection.get_client()
        info: Dict[str, Any] = services.connection.describe()
        if services.connection.state is ConnectionState.CONNECTED:
            return Result.ok(info)
        return JSONResponse(
            status_code=503,
            content=Result.unavailable(f"Redis不可用: {info.get('error')}", info).model_dump(),
        )

    return app


app = create_app()
