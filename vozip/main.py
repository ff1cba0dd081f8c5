# vozip/main.py
from dotenv import load_dotenv

# Cargar variables de entorno desde .env ANTES de cualquier otra cosa
load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.bootstrap import bootstrap_system
from .core.config import Settings, get_settings
from .core.rate_limit import limiter, rate_limit_handler
from .db.engine import Database

# Importaciones de API Routers
from .api.audit import main as audit_main_api
from .api.catalogs import main as catalogs_main_api
from .api.clients import main as clients_main_api
from .api.payments import main as payments_main_api
from .api.permissions import main as permissions_main_api
from .api.users import main as users_main_api

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.database_url)
        bootstrap_system(db, settings)
        app.state.db = db
        logger.info("✅ Database tables initialized")

        scheduler = None
        if settings.app_env != "test":
            from .scheduler import start_scheduler

            scheduler = start_scheduler(db, settings)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            db.dispose()

    app = FastAPI(title="VozIP Facturación", version="1.0.0", lifespan=lifespan)

    # --- Configuración de SlowAPI ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    # ========================================================================
    # --- SEGURIDAD: CONFIGURACIÓN CORS ESTRICTA ---
    # ========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========================================================================
    # --- SEGURIDAD: CABECERAS DE SEGURIDAD HTTP ---
    # ========================================================================
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # ========================================================================
    # --- GLOBAL EXCEPTION HANDLERS ---
    # ========================================================================
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(content),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Datos inválidos", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Error no controlado en {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Error interno del servidor", "error": str(exc)},
        )

    # ========================================================================
    # --- ROUTERS INCLUSION ---
    # ========================================================================
    app.include_router(users_main_api.router, prefix="/api/users", tags=["Users"])
    app.include_router(clients_main_api.router, prefix="/api/clientes", tags=["Clientes"])
    app.include_router(payments_main_api.router, prefix="/api/pagos", tags=["Pagos"])
    app.include_router(catalogs_main_api.tariffs_router, prefix="/api/tarifas", tags=["Tarifas"])
    app.include_router(catalogs_main_api.plans_router, prefix="/api/planes", tags=["Planes"])
    app.include_router(catalogs_main_api.sectors_router, prefix="/api/sectores", tags=["Sectores"])
    app.include_router(
        catalogs_main_api.service_types_router, prefix="/api/tipos-servicio", tags=["Tipos de servicio"]
    )
    app.include_router(catalogs_main_api.statuses_router, prefix="/api/estados", tags=["Estados"])
    app.include_router(
        catalogs_main_api.payment_methods_router, prefix="/api/metodos-pago", tags=["Métodos de pago"]
    )
    app.include_router(catalogs_main_api.permissions_router, prefix="/api/permisos", tags=["Permisos"])
    app.include_router(
        permissions_main_api.router, prefix="/api/usuario-permisos", tags=["Usuario-Permisos"]
    )
    app.include_router(audit_main_api.router, prefix="/api/bitacora", tags=["Bitácora"])

    @app.get("/api/health", include_in_schema=False)
    def health():
        return {"status": "ok"}

    return app


app = create_app()
