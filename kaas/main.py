from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from .routers import deployments
from .config import get_settings
from .services.provisioning import KubernetesClient, ReaperRegistry
import logging

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="KaaS Provisioning API")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": deployments.BAD_REQUEST})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    try:
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code}")
        return response
    except Exception as e:
        logger.error(f"Request failed: {str(e)}")
        raise


@app.on_event("startup")
async def startup():
    # The client handle is built once here and injected into every request
    if getattr(app.state, "k8s_client", None) is None:
        app.state.k8s_client = KubernetesClient(settings)
    if getattr(app.state, "reapers", None) is None:
        app.state.reapers = ReaperRegistry(app.state.k8s_client, settings.reaper_interval_seconds)
    logger.info(f"KaaS started - namespace: {settings.k8s_namespace}")


@app.on_event("shutdown")
async def shutdown():
    reapers = getattr(app.state, "reapers", None)
    if reapers is not None:
        await reapers.stop_all()
        logger.info("Stopped all health monitors")


app.include_router(deployments.router)

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "kaas"}
