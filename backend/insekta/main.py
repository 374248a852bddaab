import logging
import os
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.orm import Session
from insekta.config import DEBUG, CORS_ORIGINS, VERSION, LOG_LEVEL, UPLOAD_DIR, DEFAULT_ADMIN_EMAIL
from insekta.database import engine, Base, SessionLocal
from insekta.routes import auth, banners, charts, features, health, teams, users
from insekta.routes.auth import hash_password, random_password, default_avatar
from insekta.utils.rate_limiter import api_limiter
# Import models so their tables are registered before create_all
from insekta.models import User, Feature, FeatureAssignment, Banner, Chart, TeamMember  # noqa: F401

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("insekta")

Base.metadata.create_all(bind=engine)


def _create_default_admin():
    db: Session = SessionLocal()
    try:
        admin_exists = db.query(User).filter(User.role == "admin").first()
        if not admin_exists:
            init_pw = random_password()
            default = User(
                name="Administrator",
                email=DEFAULT_ADMIN_EMAIL,
                password_hash=hash_password(init_pw),
                role="admin",
                avatar=default_avatar("Administrator"),
                is_active=True,
                is_first_login=True,
            )
            db.add(default)
            db.commit()
            logger.info("[INIT] default admin account created")
            logger.info("[INIT] email: %s", DEFAULT_ADMIN_EMAIL)
            logger.info("[INIT] password: %s  (change it on first login)", init_pw)
    except Exception as e:
        logger.warning("[INIT] could not create default admin: %s", e)
        db.rollback()
    finally:
        db.close()


_create_default_admin()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        if not DEBUG:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# Per-IP request budget over the whole /api surface
class APIRateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/api/"):
            ip_address = request.client.host if request.client else "unknown"
            if not api_limiter.is_allowed(ip_address):
                remaining = api_limiter.get_remaining_time(ip_address)
                logger.warning("[AUTH] API rate limit exceeded for %s", ip_address)
                return JSONResponse(
                    status_code=429,
                    content={"detail": f"Terlalu banyak request. Coba lagi dalam {remaining} detik"},
                )
        return await call_next(request)


# API docs only in DEBUG mode
app = FastAPI(
    title="Insekta Dashboard API",
    description="Client portal: per-client menus, live Google Sheet charts, banners and field team",
    version=VERSION,
    docs_url="/docs" if DEBUG else None,
    redoc_url="/redoc" if DEBUG else None,
    openapi_url="/openapi.json" if DEBUG else None,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Body/query validation failures are reported as 400 with the first message"""
    errors = exc.errors()
    message = "Data tidak valid"
    if errors:
        first = errors[0]
        message = str(first.get("msg", message))
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        if first.get("type") == "missing" and field:
            message = f"{field} wajib diisi"
    return JSONResponse(status_code=400, content={"detail": message})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(APIRateLimitMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(features.router)
app.include_router(charts.router)
app.include_router(banners.router)
app.include_router(teams.router)

# Uploaded avatars, icons and team photos
os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("insekta.main:app", host="0.0.0.0", port=8000, reload=DEBUG)
