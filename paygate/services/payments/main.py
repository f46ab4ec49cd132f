"""Public HTTP surface of the payment gateway.

Validates requests, hands commands to `PaymentService`, and maps results and
faults to status codes. Bank transport faults become 503; anything else that
escapes becomes 500.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import UUID, uuid4

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from paygate.common.config import settings
from paygate.common.logging import configure_logging, logger, trace_id_ctx
from paygate.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from paygate.common.result import Error
from paygate.common.startup import log_startup_config
from paygate.common.tracing import instrument_app, setup_tracing
from paygate.services.bank.client import HttpAcquiringBankClient
from paygate.services.ledger.factory import build_ledger
from paygate.services.payments.schemas import PaymentResponse, PostPaymentRequest
from paygate.services.payments.service import PaymentService
from paygate.services.payments.validation import validate_payment_request

PAYMENTS_BASE = "/api/v1/payments"

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "bank_base_url",
        "bank_payment_route",
        "bank_timeout_seconds",
        "ledger_backend",
        "database_dsn",
        "supported_currencies",
    ],
)
bank = HttpAcquiringBankClient(
    settings.bank_base_url,
    payment_route=settings.bank_payment_route,
    timeout_seconds=settings.bank_timeout_seconds,
)
service = PaymentService(build_ledger(settings), bank, service_name=settings.service_name)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Close the pooled bank connection with app lifecycle."""

    yield
    await bank.close()


app = FastAPI(title="Payment Gateway", lifespan=lifespan)
instrument_app(app)


def get_payment_service() -> PaymentService:
    return service


def _problem(status_code: int, title: str, detail: str, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "type": "about:blank",
            "title": title,
            "status": status_code,
            "detail": detail,
            "instance": trace_id_ctx.get() or request.url.path,
        },
        media_type="application/problem+json",
    )


def _error_response(error: Error) -> JSONResponse:
    return JSONResponse(status_code=error.http_status(), content={"detail": error.message})


@app.middleware("http")
async def correlation_middleware(request: Request, call_next):
    """Bind a trace id and record request count and latency for every call."""

    token = trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id_ctx.get()
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()
        trace_id_ctx.reset(token)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400, like failed field validation."""

    errors = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"errors": errors})


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    """Bank transport faults: timeouts, connection errors, unexpected statuses."""

    logger.error("downstream HTTP error: %s", exc, exc_info=exc)
    return _problem(503, "Upstream service unavailable", "A dependent service is unavailable.", request)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Last-resort handler."""

    logger.error("unhandled exception: %s", exc, exc_info=exc)
    return _problem(500, "An unexpected error occurred", "Please try again later.", request)


@app.post(PAYMENTS_BASE, response_model=PaymentResponse)
async def post_payment(req: PostPaymentRequest, payments: PaymentService = Depends(get_payment_service)):
    """Validate, process and return one payment."""

    errors = validate_payment_request(req, settings.supported_currencies)
    if errors:
        return JSONResponse(status_code=400, content={"errors": errors})

    result = await payments.process_payment(req.to_command())
    if result.is_failure:
        return _error_response(result.error)
    return PaymentResponse.from_record(result.data)


@app.get(PAYMENTS_BASE + "/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: UUID, payments: PaymentService = Depends(get_payment_service)):
    """Fetch a previously processed payment."""

    if payment_id.int == 0:
        return JSONResponse(status_code=400, content={"detail": "Invalid payment ID."})
    result = await payments.get_payment(str(payment_id))
    if result.is_failure:
        return _error_response(result.error)
    return PaymentResponse.from_record(result.data)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
