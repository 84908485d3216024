import logging
import os
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ndasurvey.errors import SurveyError
from ndasurvey.routers.surveys import router as surveys_router

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

_started = time.monotonic()

app = FastAPI(title="NDA Survey API")

# Get CORS origins from environment variable
cors_origins = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:5176,http://localhost:3000,http://localhost:5173",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info("%s %s %s %.1fms", request.method, request.url.path,
                response.status_code, (time.perf_counter() - started) * 1000)
    return response


# ---------- Error envelope ----------

@app.exception_handler(SurveyError)
async def survey_error_handler(request: Request, exc: SurveyError):
    body = {"success": False, "message": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400,
                        content={"success": False, "message": f"Invalid request: {problems}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={
        "success": False,
        "message": "Internal server error",
        "error": str(exc) if APP_ENV == "development" else "Internal server error",
    })


@app.get("/api/health")
def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "uptime": round(time.monotonic() - _started, 3),
        "environment": APP_ENV,
    }


app.include_router(surveys_router)
