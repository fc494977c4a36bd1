from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from api.routes.generate_routes import generate_routes
from api.routes.history_routes import history_routes
from api.config import create_db, get_settings
from api.services.stream_relay import IMAGE_URL_HEADER
from api.utils.logger import configure_logging, set_request_id, clear_request_id
from fastapi import Request
from starlette.responses import Response, JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

settings = get_settings()
app = FastAPI(title="Mind Spark", version="0.1.0")
logger = configure_logging(level=settings.log_level, log_dir=settings.log_dir)
create_db()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # Browsers hide custom response headers unless exposed.
    expose_headers=[IMAGE_URL_HEADER, "x-request-id"],
)

@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    try:
        logger.info("request start method=%s path=%s client=%s", request.method, request.url.path, request.client)
        response: Response = await call_next(request)
        logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
        response.headers["x-request-id"] = rid
        return response
    except Exception:
        logger.exception("request error method=%s path=%s", request.method, request.url.path)
        raise
    finally:
        clear_request_id()


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Server-side errors keep their cause; client errors are warnings.
    if exc.status_code >= 500:
        logger.error(
            "http error status=%s method=%s path=%s detail=\n%s",
            exc.status_code, request.method, request.url.path, exc.detail,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning("http error status=%s method=%s path=%s detail=\n%s", exc.status_code, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("validation error method=%s path=%s errors=\n%s", request.method, request.url.path, exc.errors())
    errors = exc.errors()
    message = "; ".join(str(e.get("msg", "")) for e in errors) or "Invalid request"
    return JSONResponse(status_code=422, content={"message": message, "detail": jsonable_errors(errors)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internal exception details to clients.
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


def jsonable_errors(errors) -> list[dict]:
    # pydantic error contexts may hold exception instances.
    return [{k: v for k, v in e.items() if k != "ctx"} for e in errors]


@app.get("/")
def read_root():
    return {"message": "Mind Spark is Healthy"}

app.include_router(generate_routes, prefix="/api")
app.include_router(history_routes, prefix="/api")

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
