from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .allowlist import load_allowlist
from .config import Settings
from .errors import PassportError
from .logger import get_logger, setup_logging
from .logic import PassportService
from .models import (
    AuthResponse,
    GenerateVisitTokenRequest,
    LeaderboardResponse,
    LoginRequest,
    OkResponse,
    SignupRequest,
    VerifyVisitRequest,
    VisitTokenResponse,
    VisitsResponse,
)
from .security import TokenService

logger = get_logger(__name__)

BANNER = "IRIA Stall Passport Backend Running"


# ---------------------------
# Dependencies
# ---------------------------

def get_service(request: Request) -> PassportService:
    return request.app.state.service


def current_email(
    authorization: Optional[str] = Header(None),
    service: PassportService = Depends(get_service),
) -> str:
    return service.authenticate(authorization)


# ---------------------------
# FastAPI App & Routes
# ---------------------------

def create_app(settings: Optional[Settings] = None, service: Optional[PassportService] = None) -> FastAPI:
    """
    Build the application.

    With no arguments settings come from the environment, so this doubles as
    the uvicorn factory:

        uvicorn stall_passport.main:create_app --factory --port 10000
    """
    if settings is None:
        settings = Settings.from_env()
    setup_logging(settings.log_level)

    if service is None:
        service = PassportService(
            allowlist=load_allowlist(settings.allowlist_source),
            tokens=TokenService(settings.jwt_secret),
            admin_key=settings.admin_key,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    app = FastAPI(title="Stall Passport Service")
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PassportError)
    def passport_error_handler(request: Request, exc: PassportError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/")
    def root():
        return {"status": "ok", "service": BANNER}

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    # Auth

    @app.post("/api/signup", response_model=AuthResponse)
    def signup(payload: SignupRequest, service: PassportService = Depends(get_service)):
        token, name = service.signup(payload.name, payload.email, payload.password)
        return AuthResponse(token=token, name=name)

    @app.post("/api/login", response_model=AuthResponse)
    def login(payload: LoginRequest, service: PassportService = Depends(get_service)):
        token, name = service.login(payload.email, payload.password)
        return AuthResponse(token=token, name=name)

    # Visits

    @app.get("/api/visits", response_model=VisitsResponse)
    def list_visits(
        email: str = Depends(current_email),
        service: PassportService = Depends(get_service),
    ):
        return VisitsResponse(visits=service.list_visits(email))

    @app.post("/api/generate-visit-token", response_model=VisitTokenResponse)
    def generate_visit_token(
        payload: GenerateVisitTokenRequest,
        email: str = Depends(current_email),
        service: PassportService = Depends(get_service),
    ):
        token, exp = service.generate_visit_token(payload.stall)
        return VisitTokenResponse(token=token, exp=exp)

    @app.post("/api/verify", response_model=OkResponse)
    def verify_visit(
        payload: VerifyVisitRequest,
        email: str = Depends(current_email),
        service: PassportService = Depends(get_service),
    ):
        service.verify_visit(email, payload.token, payload.stall)
        return OkResponse(ok=True)

    @app.get("/api/leaderboard", response_model=LeaderboardResponse)
    def leaderboard(service: PassportService = Depends(get_service)):
        return LeaderboardResponse(top=service.leaderboard())

    # Admin

    @app.post("/api/admin/reset", response_model=OkResponse)
    def admin_reset(
        admin_key: Optional[str] = Header(None, alias="admin-key"),
        service: PassportService = Depends(get_service),
    ):
        service.check_admin_key(admin_key)
        service.reset()
        return OkResponse(ok=True)

    @app.get("/api/admin/export")
    def admin_export(
        admin_key: Optional[str] = Header(None, alias="admin-key"),
        key: Optional[str] = Query(None),
        service: PassportService = Depends(get_service),
    ):
        service.check_admin_key(admin_key or key)
        return Response(
            content=service.export_csv(),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="stall_visits.csv"'},
        )

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger.info("Backend listening on %s", settings.port)
    uvicorn.run(
        "stall_passport.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    run()
