import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import DomainError
from app.api.routes.rentals import router as rentals_router
from app.api.routes.vehicles import router as vehicles_router
from app.api.routes.payments import router as payments_router
from app.api.routes.reviews import router as reviews_router
from app.api.routes.audit_logs import router as audit_logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# 1) Create the app FIRST
app = FastAPI(title="Car Rental Backend")

# 2) Add CORS Middleware BEFORE routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 3) Domain errors -> {"detail", "code"} with the matching HTTP status
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 409:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


# 4) Include routers AFTER app is created
app.include_router(rentals_router)
app.include_router(vehicles_router)
app.include_router(payments_router)
app.include_router(reviews_router)
app.include_router(audit_logs_router)


# 5) Health check endpoints
@app.get("/health")
def health():
    return {"ok": True, "service": "car-rental-backend", "env": settings.ENV}


@app.get("/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
