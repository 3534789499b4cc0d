"""HTTP surface for customer records and their status lifecycle."""

from time import perf_counter
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response

from custrack.common.config import settings
from custrack.common.db import SessionLocal
from custrack.common.errors import (
    CustomerNotDeletedError,
    CustomerNotFoundError,
    CustomerServiceError,
    DuplicateCustomerError,
    InvalidTransitionError,
)
from custrack.common.logging import bind_log_context, configure_logging, logger, trace_id_ctx
from custrack.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from custrack.common.startup import log_startup_config
from custrack.common.state_machine import ordered_transitions
from custrack.common.status import CustomerStatus
from custrack.common.tracing import instrument_app, setup_tracing
from custrack.services.customers.schemas import (
    CustomerCreateRequest,
    CustomerPageResponse,
    CustomerResponse,
    CustomerStatisticsResponse,
    CustomerUpdateRequest,
    StatusHistoryResponse,
    StatusOption,
    StatusRegistryEntry,
    StatusTransitionRequest,
    TransitionCheckResponse,
)
from custrack.services.customers.service import MAX_ACTIVITY_DAYS, MAX_PAGE, CustomerService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(settings)
service = CustomerService(SessionLocal, service_name=settings.service_name)

app = FastAPI(title="Customer Tracking Service")
instrument_app(app)

ERROR_STATUS_CODES: dict[type[CustomerServiceError], int] = {
    CustomerNotFoundError: 404,
    InvalidTransitionError: 400,
    DuplicateCustomerError: 409,
    CustomerNotDeletedError: 400,
}


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count/latency and bind the correlation id for logs."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    trace_token = trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id_ctx.get()
        return response
    finally:
        trace_id_ctx.reset(trace_token)
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


def enforce_api_key(x_api_key: str | None = Header(default=None)) -> None:
    """Reject requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def current_actor(x_actor: str | None = Header(default=None)) -> str:
    return (x_actor or "").strip() or "system"


def to_http_error(exc: CustomerServiceError) -> HTTPException:
    """Map a domain error onto its HTTP status with a `{code, message}` body."""

    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    if status_code != 404:
        logger.info("request_rejected code=%s message=%s", exc.code, exc.message)
    return HTTPException(status_code=status_code, detail=exc.to_detail())


@app.post(
    "/customers",
    response_model=CustomerResponse,
    status_code=201,
    dependencies=[Depends(enforce_api_key)],
)
def create_customer(req: CustomerCreateRequest, actor: str = Depends(current_actor)):
    """Create a customer and record its initial status."""

    with bind_log_context(actor=actor):
        try:
            return service.create_customer(req, actor)
        except CustomerServiceError as exc:
            raise to_http_error(exc) from exc


@app.get("/customers", response_model=CustomerPageResponse, dependencies=[Depends(enforce_api_key)])
def search_customers(
    q: str | None = None,
    status: list[CustomerStatus] | None = Query(default=None),
    customer_agent: str | None = None,
    include_deleted: bool = False,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int | None = None,
):
    """Paged customer search, newest update first."""

    return service.search_customers(
        query=q,
        statuses=status,
        customer_agent=customer_agent,
        include_deleted=include_deleted,
        page=page,
        limit=limit,
    )


@app.get("/customers/recent", response_model=CustomerPageResponse, dependencies=[Depends(enforce_api_key)])
def recent_customers(
    days: int = Query(default=7, ge=0, le=MAX_ACTIVITY_DAYS),
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int | None = None,
):
    return service.recently_updated(days, page=page, limit=limit)


@app.get(
    "/customers/statistics",
    response_model=CustomerStatisticsResponse,
    dependencies=[Depends(enforce_api_key)],
)
def customer_statistics(include_deleted: bool = False):
    return service.statistics(include_deleted=include_deleted)


@app.get("/customers/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(enforce_api_key)])
def get_customer(customer_id: str):
    try:
        return service.get_customer(customer_id)
    except CustomerServiceError as exc:
        raise to_http_error(exc) from exc


@app.patch(
    "/customers/{customer_id}",
    response_model=CustomerResponse,
    dependencies=[Depends(enforce_api_key)],
)
def update_customer(customer_id: str, req: CustomerUpdateRequest, actor: str = Depends(current_actor)):
    with bind_log_context(customer_id, actor):
        try:
            return service.update_customer(customer_id, req)
        except CustomerServiceError as exc:
            raise to_http_error(exc) from exc


@app.delete("/customers/{customer_id}", status_code=204, dependencies=[Depends(enforce_api_key)])
def delete_customer(customer_id: str, actor: str = Depends(current_actor)):
    """Soft delete; status and history are left untouched."""

    with bind_log_context(customer_id, actor):
        try:
            service.delete_customer(customer_id)
        except CustomerServiceError as exc:
            raise to_http_error(exc) from exc
    return Response(status_code=204)


@app.post(
    "/customers/{customer_id}/restore",
    response_model=CustomerResponse,
    dependencies=[Depends(enforce_api_key)],
)
def restore_customer(customer_id: str, actor: str = Depends(current_actor)):
    with bind_log_context(customer_id, actor):
        try:
            return service.restore_customer(customer_id)
        except CustomerServiceError as exc:
            raise to_http_error(exc) from exc


@app.post(
    "/customers/{customer_id}/status-transition",
    response_model=CustomerResponse,
    dependencies=[Depends(enforce_api_key)],
)
def transition_status(
    customer_id: str,
    req: StatusTransitionRequest,
    actor: str = Depends(current_actor),
):
    """Move a customer to `to_status` and append the change to its history.

    Rejections return 400 with the transition table's explanation verbatim.
    """

    with bind_log_context(customer_id, actor):
        try:
            return service.transition_status(customer_id, req.to_status, req.reason, actor)
        except CustomerServiceError as exc:
            raise to_http_error(exc) from exc


@app.get(
    "/customers/{customer_id}/status-history",
    response_model=list[StatusHistoryResponse],
    dependencies=[Depends(enforce_api_key)],
)
def status_history(
    customer_id: str,
    response: Response,
    newest_first: bool = True,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int | None = None,
):
    try:
        rows, total = service.status_history(customer_id, newest_first=newest_first, page=page, limit=limit)
    except CustomerServiceError as exc:
        raise to_http_error(exc) from exc
    response.headers["x-total-count"] = str(total)
    return [StatusHistoryResponse.from_row(row) for row in rows]


@app.get(
    "/customers/{customer_id}/valid-transitions",
    response_model=list[StatusOption],
    dependencies=[Depends(enforce_api_key)],
)
def valid_transitions(customer_id: str):
    try:
        targets = service.valid_transitions(customer_id)
    except CustomerServiceError as exc:
        raise to_http_error(exc) from exc
    return [StatusOption.of(status) for status in targets]


@app.get(
    "/customers/{customer_id}/can-transition-to/{to_status}",
    response_model=TransitionCheckResponse,
    dependencies=[Depends(enforce_api_key)],
)
def can_transition_to(customer_id: str, to_status: CustomerStatus):
    try:
        valid, message = service.can_transition_to(customer_id, to_status)
    except CustomerServiceError as exc:
        raise to_http_error(exc) from exc
    return TransitionCheckResponse(valid=valid, message=message)


@app.get("/statuses", response_model=list[StatusRegistryEntry])
def statuses():
    """Dump the status table for clients building transition menus."""

    return [
        StatusRegistryEntry(
            code=status,
            display_name=status.display_name,
            allowed_targets=[StatusOption.of(target) for target in ordered_transitions(status)],
        )
        for status in CustomerStatus
    ]


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
