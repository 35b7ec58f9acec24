# app/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .deps import close_stores, init_stores
from .errors import ApiError
from .logger import get_logger
from .routes import orders as orders_router
from .settings import settings

log = get_logger("app")

app = FastAPI(title="Maiee Saree Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Order-Storage"],
)

app.include_router(orders_router.router)


@app.exception_handler(ApiError)
async def _api_error(request: Request, exc: ApiError):
    log.error("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code,
                        content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def _bad_request(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
    log.warning("%s %s -> 400: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    log.exception("%s %s -> 500: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500,
                        content={"success": False, "error": "Internal server error"})


@app.get("/")
def root():
    return {"message": "Maiee Saree Backend is running"}


@app.get("/api/health")
def health():
    return {
        "ok": True,
        "remote_configured": bool(settings.database_url),
        "data_dir": str(settings.data_dir),
    }


@app.on_event("startup")
def _startup_stores():
    init_stores(app, settings)
    if not app.state.remote_store.configured:
        # orders will still be accepted through the local store
        log.warning("[startup] DATABASE_URL not set; orders go to %s", settings.data_dir)


@app.on_event("shutdown")
async def _shutdown_stores():
    await close_stores(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
