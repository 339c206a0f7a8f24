from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from datetime import datetime
from contextlib import asynccontextmanager
from dotenv import load_dotenv

load_dotenv()

from .core.config import settings
from .core.exceptions import (
    ALLOWED_ORIGINS_SET,
    BlogAdminException,
    blog_admin_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler
)
from .api.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from .api.routes import images, posts
from .database.session import init_db, close_db, check_db_connection
from .services.storage_service import get_image_store

# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

def _check_secret_key() -> bool:
    """운영 모드에서 기본 SECRET_KEY 사용 여부 경고"""
    if settings.uses_default_secret_key and not settings.DEBUG:
        logger.warning("SECRET_KEY가 기본값입니다 - 운영 환경에서는 반드시 변경하세요")
        return False
    return True

@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 수명주기 관리"""
    logger.info("애플리케이션 시작...")

    try:
        await init_db()
        logger.info("데이터베이스 초기화 성공")
    except Exception as e:
        logger.error(f"데이터베이스 초기화 실패: {str(e)}")
        logger.error("애플리케이션은 계속 실행되지만 데이터베이스 기능이 제한될 수 있습니다")

    _check_secret_key()

    if not get_image_store().is_configured():
        logger.warning("Cloudinary 설정이 없습니다 - 이미지 업로드/삭제가 실패합니다")

    logger.info("애플리케이션 시작 완료")

    yield

    logger.info("애플리케이션 종료...")
    await close_db()
    logger.info("애플리케이션 종료 완료")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="블로그 게시글 관리 서비스",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# CORS 미들웨어
app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(ALLOWED_ORIGINS_SET),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"]
)

# TrustedHost 미들웨어
if settings.ALLOWED_HOSTS != ["*"]:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# 예외 핸들러
app.add_exception_handler(BlogAdminException, blog_admin_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

@app.get("/")
async def root():
    return {
        "message": "Blog Admin Service API",
        "version": settings.APP_VERSION,
        "status": "running",
        "timestamp": datetime.now().isoformat()
    }

@app.get("/health")
async def health_check():
    db_status = "connected" if await check_db_connection() else "error"
    storage_status = "configured" if get_image_store().is_configured() else "unconfigured"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
        "storage": storage_status,
        "timestamp": datetime.now().isoformat()
    }

# API 라우터 등록
api_prefix = settings.API_PREFIX
app.include_router(posts.router, prefix=api_prefix, tags=["posts"])
app.include_router(images.router, prefix=api_prefix, tags=["images"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "blog_admin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
