"""
Client Project Portal - Backend
FastAPI + SQLAlchemy + Jinja2 dashboard
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from common.auth import Decision, close_http_client
from common.config import get_config
from modules.tracking.database import init_db
from services.provisioning.app import register as register_provisioning
from services.provisioning.app import register_generator

from .deps import GuardInterrupt, templates
from .routers import auth, dashboard, dashboard_configs, health, payments, phases, profiles, projects, tasks

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Portal started ({get_config().environment}, identity backend: {get_config().auth.backend})")
    yield
    close_http_client()
    logger.info("Portal shutdown.")


app = FastAPI(
    title="Client Project Portal API",
    description="Project status, phases, payments and ROI for clients",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GuardInterrupt)
async def guard_interrupt_handler(request: Request, exc: GuardInterrupt):
    decision = exc.decision
    if decision.decision is Decision.REDIRECT:
        return RedirectResponse(decision.redirect_to, status_code=303)
    return templates.TemplateResponse(request, "access_denied.html", {}, status_code=403)


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(dashboard.router, tags=["Dashboard"])
app.include_router(phases.router, prefix="/api/phases", tags=["Phases"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(dashboard_configs.router, prefix="/api/dashboard-configs", tags=["Dashboard Configs"])
register_provisioning(app, "/functions/admin-create-user")
register_generator(app, "/functions/generate-client-project")


@app.get("/")
def root():
    return {
        "name": "Client Project Portal API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "dashboard": "/dashboard",
    }
