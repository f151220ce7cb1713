from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from datetime import date
from time import perf_counter
from typing import Any, Protocol

from pydantic import ValidationError as ModelValidationError

from ..exceptions import ApiError, NotFoundError, ResponseShapeError, SessionExpiredError
from ..permission_errors import PermissionDenial
from ..telemetry import EventCategory, TelemetryLogger, build_event
from ..ui_errors import describe_failure
from .filters import FilterKind, normalize_value, serialize_filters, start_of_day
from .pagination import PageRequest, PageResult, total_pages_for
from .resources import ResourceConfig

logger = logging.getLogger(__name__)


class Requester(Protocol):
    async def request(self, method: str, path: str, **kwargs: Any) -> Any: ...


class QueryController:
    """Filter, pagination and result state for one resource listing.

    Mutators (``set_filter``, ``set_page``, ``set_per_page``,
    ``clear_filters``) change state; ``refresh`` issues the request for the
    current state. With ``auto_refresh`` every mutator also schedules a
    ``refresh`` on the running loop, and ``settle`` awaits those fetches.
    Each fetch is numbered, and a response that arrives after a newer fetch
    was issued is discarded, so an old page can never overwrite the result of
    newer filters.
    """

    def __init__(
        self,
        gateway: Requester,
        resource: ResourceConfig,
        *,
        per_page: int = 20,
        today: Callable[[], date] = date.today,
        on_change: Callable[["QueryController"], None] | None = None,
        telemetry: TelemetryLogger | None = None,
        auto_refresh: bool = False,
    ) -> None:
        self.gateway = gateway
        self.resource = resource
        self._today = today
        self.on_change = on_change
        self.telemetry = telemetry or TelemetryLogger.disabled()

        self.page_request = PageRequest(page=1, per_page=per_page)
        self.filters: dict[str, Any] = self.default_filters()
        self.result = PageResult.empty(self.page_request)
        self.aggregates: dict[str, Any] = copy.deepcopy(dict(resource.aggregate_defaults))
        self.permission_error: PermissionDenial | None = None
        self.error_message: str | None = None
        self.loading = False
        self._sequence = 0
        self.auto_refresh = auto_refresh
        self._scheduled: set[asyncio.Task[PageResult]] = set()

    @property
    def page(self) -> int:
        return self.page_request.page

    @property
    def per_page(self) -> int:
        return self.page_request.per_page

    @property
    def sequence(self) -> int:
        return self._sequence

    def default_filters(self) -> dict[str, Any]:
        defaults: dict[str, Any] = {key: None for key in self.resource.filter_keys}
        for spec in self.resource.filters:
            if spec.kind is FilterKind.START_DATE and self.resource.default_start_today:
                defaults[spec.key] = start_of_day(self._today())
        return defaults

    def set_filter(self, key: str, value: Any) -> PageRequest:
        spec = self.resource.filter_spec(key)
        self.filters[key] = normalize_value(spec, value)
        self.page_request = self.page_request.first()
        self._changed()
        return self.page_request

    def set_page(self, page: int) -> PageRequest:
        self.page_request = self.page_request.goto(page)
        self._changed()
        return self.page_request

    def set_per_page(self, per_page: int) -> PageRequest:
        self.page_request = PageRequest(page=1, per_page=per_page)
        self._changed()
        return self.page_request

    def clear_filters(self) -> PageRequest:
        self.filters = self.default_filters()
        self.page_request = self.page_request.first()
        self.permission_error = None
        self.error_message = None
        self._changed()
        return self.page_request

    def build_params(self) -> dict[str, Any]:
        params: dict[str, Any] = self.page_request.params()
        params.update(serialize_filters(self.resource.filters, self.filters))
        return params

    async def refresh(self) -> PageResult:
        self._sequence += 1
        sequence = self._sequence
        request = self.page_request
        params = self.build_params()
        self.loading = True
        started = perf_counter()
        logger.debug(
            "query_fetch_start",
            extra={"resource": self.resource.name, "sequence": sequence, "page": request.page},
        )
        try:
            payload = await self.gateway.request("GET", self.resource.path, params=params)
            result, aggregates = self._parse(payload, request)
        except Exception as exc:
            if self._is_stale(sequence):
                return self.result
            self._apply_failure(exc, started)
        else:
            if self._is_stale(sequence):
                return self.result
            self._apply_success(result, aggregates, started)
        finally:
            if sequence == self._sequence:
                self.loading = False

        if self.on_change is not None:
            self.on_change(self)
        return self.result

    async def settle(self) -> PageResult:
        """Wait for every scheduled fetch; returns the current result."""
        while self._scheduled:
            await asyncio.gather(*list(self._scheduled), return_exceptions=True)
        return self.result

    def _changed(self) -> None:
        if not self.auto_refresh:
            return
        # Raises RuntimeError outside a running event loop.
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)
        self.loading = True

    def _is_stale(self, sequence: int) -> bool:
        if sequence == self._sequence:
            return False
        logger.debug(
            "query_response_discarded",
            extra={"resource": self.resource.name, "sequence": sequence, "latest_sequence": self._sequence},
        )
        return True

    def _parse(self, payload: Any, request: PageRequest) -> tuple[PageResult, dict[str, Any]]:
        if not isinstance(payload, dict):
            raise _shape_error(f"Expected {self.resource.name} response to be a JSON object")
        raw_items = payload.get(self.resource.items_key)
        if not isinstance(raw_items, list):
            raise _shape_error(f"Expected {self.resource.items_key!r} to be a list")
        if len(raw_items) > request.per_page:
            raise _shape_error(
                f"Server returned {len(raw_items)} {self.resource.name} for per_page={request.per_page}"
            )
        total = payload.get("total", 0)
        if not isinstance(total, int) or isinstance(total, bool) or total < 0:
            raise _shape_error(f"Invalid total {total!r}")
        try:
            items = [self.resource.item_model.model_validate(item) for item in raw_items]
        except ModelValidationError as exc:
            raise _shape_error(f"Invalid {self.resource.name} item: {exc.error_count()} validation errors") from exc

        total_pages = total_pages_for(total, request.per_page)
        reported = payload.get("total_pages")
        if reported is not None and reported != total_pages:
            logger.warning(
                "query_total_pages_mismatch",
                extra={"resource": self.resource.name, "reported": reported, "computed": total_pages},
            )

        aggregates: dict[str, Any] = {}
        for key, default in self.resource.aggregate_defaults.items():
            value = payload.get(key)
            aggregates[key] = copy.deepcopy(default) if value is None else value

        result = PageResult(
            items=items,
            total=total,
            total_pages=total_pages,
            page=request.page,
            per_page=request.per_page,
        )
        return result, aggregates

    def _apply_success(self, result: PageResult, aggregates: dict[str, Any], started: float) -> None:
        self.result = result
        self.aggregates = aggregates
        self.permission_error = None
        self.error_message = None
        logger.info(
            "query_fetch_success",
            extra={"resource": self.resource.name, "page": result.page, "total": result.total},
        )
        self._emit(
            EventCategory.FETCH,
            "fetch_succeeded",
            success=True,
            duration_ms=_elapsed_ms(started),
            attributes={"resource": self.resource.name, "page": result.page, "total": result.total},
        )

    def _apply_failure(self, error: Exception, started: float) -> None:
        self.result = PageResult.empty(self.page_request)
        self.aggregates = copy.deepcopy(dict(self.resource.aggregate_defaults))
        failure = describe_failure(
            error,
            action=self.resource.view_action,
            resource_label=self.resource.detail_label,
        )
        self.permission_error = failure.permission
        # Session expiry has already redirected to login; a 404 on a listing is an empty page.
        quiet = isinstance(error, (SessionExpiredError, NotFoundError))
        self.error_message = None if quiet else failure.message

        error_code = error.code if isinstance(error, ApiError) else type(error).__name__
        if isinstance(error, ApiError):
            logger.warning(
                "query_fetch_failed",
                extra={"resource": self.resource.name, "status_code": error.status_code, "error_code": error.code},
            )
        else:
            logger.exception("query_fetch_crashed", extra={"resource": self.resource.name})
        self._emit(
            EventCategory.FETCH,
            "fetch_failed",
            success=False,
            error_code=error_code,
            duration_ms=_elapsed_ms(started),
            attributes={"resource": self.resource.name, "category": failure.category},
        )
        if failure.permission is not None:
            self._emit(
                EventCategory.PERMISSION_DENIED,
                "fetch_forbidden",
                success=False,
                error_code=error_code,
                attributes={"resource": self.resource.name, "missing_permission": failure.permission.missing_permission},
            )

    def _emit(self, category: EventCategory, name: str, **kwargs: Any) -> None:
        self.telemetry.emit(
            build_event(category, name, source=f"{self.resource.name}.refresh", **kwargs)
        )


def _shape_error(message: str) -> ResponseShapeError:
    return ResponseShapeError(code="INVALID_RESPONSE", message=message, details=None, status_code=200)


def _elapsed_ms(started: float) -> int:
    return int((perf_counter() - started) * 1000)
