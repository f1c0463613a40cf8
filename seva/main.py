import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from seva.auth import CallerContext, FirebaseIdentityProvider, require_caller
from seva.config import Settings
from seva.errors import Forbidden, Unauthorized, UpstreamUnavailable
from seva.notifications.sender import Notifier
from seva.routes.notifications import router as notifications_router
from seva.routes.registrations import router as registrations_router
from seva.routes.signups import router as signups_router
from seva.store import SheetsStore, get_client

log = logging.getLogger(__name__)

settings = Settings.from_env()

app = FastAPI(title="seva-signups", description="Spreadsheet-backed event sign-up sheets")
app.state.settings = settings

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*", "bearer", "authorization", "content-type"],
    allow_credentials="*" not in settings.cors_origins,
)

app.include_router(notifications_router)
app.include_router(registrations_router)
app.include_router(signups_router)


@app.on_event("startup")
def startup():
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.store = SheetsStore(
        get_client(settings.service_account_file, settings.service_account_json)
    )
    app.state.identity = FirebaseIdentityProvider(settings.firebase_project_id)
    app.state.notifier = Notifier(
        settings.notifier_url,
        timeout=settings.notifier_timeout,
        default_country=settings.default_country_code,
    )
    log.info("seva-signups started (%d admins configured)", len(settings.admin_emails))


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

@app.exception_handler(Unauthorized)
def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(
        status_code=401,
        content={"detail": str(exc) or "Unauthorized"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(Forbidden)
def forbidden_handler(request: Request, exc: Forbidden):
    return JSONResponse(status_code=403, content={"detail": str(exc) or "Forbidden"})


@app.exception_handler(UpstreamUnavailable)
def upstream_handler(request: Request, exc: UpstreamUnavailable):
    log.exception("Upstream failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Misc endpoints
# ---------------------------------------------------------------------------

@app.get("/api/me")
def me(caller: CallerContext = Depends(require_caller)):
    return {
        "uid": caller.uid,
        "email": caller.email,
        "phone_number": caller.phone_number,
        "name": caller.name,
        "is_admin": caller.is_admin,
    }


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
