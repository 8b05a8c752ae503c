"""Admin user provisioning endpoint.

Standalone service (POST / and OPTIONS / create users, /generate-client-project
builds a whole client project); the portal registers the same handlers
under /functions/admin-create-user and /functions/generate-client-project.

Run:
    uvicorn services.provisioning.app:app --port 8001
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from common.auth import IdentityProvider, close_http_client, get_provider
from modules.tracking import DataClient, GenerationError, NoRowsError, ProjectGenerator, describe_project
from modules.tracking.database import get_db, init_db

from .handler import ProvisioningError, Provisioner, parse_wizard

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


async def preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


async def create_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    idempotency_key: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_provider),
) -> JSONResponse:
    try:
        raw = await request.body()
        result = Provisioner(provider, DataClient(db)).provision(
            authorization, raw, idempotency_key
        )
    except ProvisioningError as e:
        return JSONResponse({"error": e.message}, status_code=e.status, headers=CORS_HEADERS)
    except Exception as e:
        logger.exception("Unexpected provisioning failure")
        return JSONResponse({"error": str(e)}, status_code=500, headers=CORS_HEADERS)
    return JSONResponse(result, status_code=200, headers=CORS_HEADERS)


async def generate_project(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_provider),
) -> JSONResponse:
    client = DataClient(db)
    try:
        Provisioner(provider, client).authorize(authorization)
        wizard = parse_wizard(await request.body())
        project = ProjectGenerator(client).generate(wizard)
        result = describe_project(project, wizard.project_info.currency)
    except ProvisioningError as e:
        return JSONResponse({"error": e.message}, status_code=e.status, headers=CORS_HEADERS)
    except NoRowsError:
        return JSONResponse({"error": "Client not found"}, status_code=404, headers=CORS_HEADERS)
    except GenerationError as e:
        return JSONResponse({"error": str(e)}, status_code=400, headers=CORS_HEADERS)
    except Exception as e:
        logger.exception("Error generating project")
        return JSONResponse({"error": str(e)}, status_code=500, headers=CORS_HEADERS)
    return JSONResponse(result, status_code=200, headers=CORS_HEADERS)


def register(app, path: str = "/") -> None:
    """Attach the provisioning handlers to an app or router at path."""
    app.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)
    app.add_api_route(path, create_user, methods=["POST"], tags=["Provisioning"])


def register_generator(app, path: str = "/generate-client-project") -> None:
    """Attach the project generation handlers to an app or router at path."""
    app.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)
    app.add_api_route(path, generate_project, methods=["POST"], tags=["Provisioning"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Provisioning service started.")
    yield
    close_http_client()


logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Provisioning Service",
    description="Admin-only creation of portal users and client projects",
    version="1.0.0",
    lifespan=lifespan,
)
register(app)
register_generator(app)
