"""
gateway/main.py
---------------
API Gateway 서비스 진입점.
각 서비스의 FastAPI router를 통합해서 전체 API 엔드포인트로 제공한다.
- CORS, 공통 예외처리, 요청 로깅 등 공통 설정도 이곳에서 적용
"""
import time
import traceback

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.config import get_settings
from common.logger import get_logger, log_with_context
from services.delivery.routers.spoke_router import router as spoke_router
from services.insights.routers.insights_router import router as insights_router
from services.integration.routers.dispatch_router import router as dispatch_router
from services.order.routers.admin_order_router import router as admin_order_router
from services.order.routers.checkout_router import router as checkout_router
from services.order.routers.order_status_router import router as order_status_router
from services.payment.routers.mercadopago_router import router as mercadopago_router
from services.payment.routers.pagseguro_router import router as pagseguro_router

logger = get_logger("gateway")
logger.info("API Gateway 초기화 시작...")

try:
    settings = get_settings()
    logger.info("설정 로드 완료")
except Exception as e:
    logger.error(f"설정 로드 실패: {e}")
    raise

logger.info(f"FastAPI 애플리케이션 생성: 제목={settings.app_name}, 디버그={settings.debug}")

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# CORS 설정 (모든 응답에 동일 적용, OPTIONS 는 미들웨어가 200 처리)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info(f"CORS 미들웨어 설정 완료: origins={settings.cors_origins}")

logger.info("서비스 라우터 등록 중...")
app.include_router(checkout_router)
app.include_router(order_status_router)
app.include_router(admin_order_router)
app.include_router(spoke_router)
app.include_router(insights_router)
app.include_router(mercadopago_router)
app.include_router(pagseguro_router)
app.include_router(dispatch_router)
logger.info("모든 서비스 라우터 등록 완료")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    log_with_context(
        logger,
        "INFO",
        f"{request.method} {request.url.path} -> {response.status_code}",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 1),
    )
    return response


@app.exception_handler(Exception)
async def catch_all_exceptions(request: Request, exc: Exception):
    logger.error("=== [Global Exception] ===")
    logger.error(f"Exception: {repr(exc)}")
    logger.error(f"Traceback: {traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "msg": str(exc)},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("gateway.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
