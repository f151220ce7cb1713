import httpx
import pytest

from cmpss_admin.exceptions import SessionExpiredError
from cmpss_admin.middleware import (
    CredentialAttachStage,
    CredentialRejectionStage,
    ExchangeLogStage,
    GatewayPipeline,
    GatewayRequest,
    default_pipeline,
    with_session_stages,
)


class FakeSession:
    def __init__(self, token: str | None = "tok-1") -> None:
        self.token = token
        self.logouts: list[str] = []

    def access_token(self) -> str | None:
        return self.token

    def logout(self, reason: str = "explicit") -> None:
        self.logouts.append(reason)
        self.token = None


def _response(status_code: int, payload: dict | None = None) -> httpx.Response:
    return httpx.Response(status_code, json=payload or {})


def test_attach_stage_adds_bearer_header() -> None:
    request = GatewayRequest(method="GET", path="/payments")

    CredentialAttachStage(FakeSession("tok-1"))(request)

    assert request.headers["Authorization"] == "Bearer tok-1"


def test_attach_stage_sends_unauthenticated_without_credential() -> None:
    request = GatewayRequest(method="GET", path="/payments", headers={"Authorization": "Bearer stale"})

    CredentialAttachStage(FakeSession(None))(request)

    assert "Authorization" not in request.headers


def test_rejection_stage_logs_out_and_redirects_on_401() -> None:
    session = FakeSession()
    redirects: list[str] = []
    stage = CredentialRejectionStage(session, lambda: redirects.append("login"))
    request = GatewayRequest(method="GET", path="/payments")

    with pytest.raises(SessionExpiredError) as excinfo:
        stage(request, _response(401, {"detail": "Token expired"}))

    assert session.logouts == ["credential_rejected"]
    assert redirects == ["login"]
    assert excinfo.value.code == "SESSION_EXPIRED"
    assert excinfo.value.message == "Token expired"


def test_rejection_stage_exempts_login_call() -> None:
    session = FakeSession()
    redirects: list[str] = []
    stage = CredentialRejectionStage(session, lambda: redirects.append("login"))

    stage(GatewayRequest(method="POST", path="/auth/login", is_login=True), _response(401))

    assert session.logouts == []
    assert redirects == []


@pytest.mark.parametrize("status_code", [200, 400, 403, 404, 500])
def test_rejection_stage_ignores_other_statuses(status_code) -> None:
    session = FakeSession()
    stage = CredentialRejectionStage(session)

    stage(GatewayRequest(method="GET", path="/payments"), _response(status_code))

    assert session.logouts == []


def test_exchange_log_stage_never_raises() -> None:
    ExchangeLogStage()(GatewayRequest(method="GET", path="/payments"), _response(500))


def test_pipeline_runs_stages_in_order() -> None:
    calls: list[str] = []
    pipeline = GatewayPipeline(
        request_stages=[lambda request: calls.append("req-1"), lambda request: calls.append("req-2")],
        response_stages=[lambda request, response: calls.append("resp-1")],
    )
    request = GatewayRequest(method="GET", path="/payments")

    pipeline.before_send(request)
    pipeline.after_receive(request, _response(200))

    assert calls == ["req-1", "req-2", "resp-1"]


def test_default_pipeline_order() -> None:
    pipeline = default_pipeline(FakeSession())

    assert [type(stage) for stage in pipeline.request_stages] == [CredentialAttachStage]
    assert [type(stage) for stage in pipeline.response_stages] == [ExchangeLogStage, CredentialRejectionStage]


def test_session_stages_are_added_to_custom_pipeline() -> None:
    def trace(request: GatewayRequest) -> None:
        request.headers["X-Trace"] = "t-1"

    log = ExchangeLogStage()

    pipeline = with_session_stages(GatewayPipeline(request_stages=[trace], response_stages=[log]), FakeSession())

    assert isinstance(pipeline.request_stages[0], CredentialAttachStage)
    assert pipeline.request_stages[1] is trace
    assert pipeline.response_stages[0] is log
    assert isinstance(pipeline.response_stages[-1], CredentialRejectionStage)


def test_session_stages_already_present_are_not_duplicated() -> None:
    session = FakeSession()
    complete = default_pipeline(session)

    pipeline = with_session_stages(complete, session)

    assert pipeline.request_stages == complete.request_stages
    assert pipeline.response_stages == complete.response_stages
