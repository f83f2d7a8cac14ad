import pytest

from planvideo.core import telemetry
from planvideo.core.config import Settings
from planvideo.core.telemetry import setup_telemetry, shutdown_telemetry

COLLECTOR = "http://collector.example.test:4318/v1/traces"


@pytest.fixture
def exporter_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    for name in ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_HEADERS"):
        monkeypatch.delenv(name, raising=False)
    calls: list[dict[str, object]] = []

    def record_exporter(**kwargs: object) -> dict[str, object]:
        calls.append(kwargs)
        return kwargs

    monkeypatch.setattr(telemetry, "OTLPSpanExporter", record_exporter)
    return calls


def test_exporter_receives_well_formed_headers_only(exporter_calls: list[dict[str, object]]) -> None:
    settings = Settings(
        otel_exporter_otlp_endpoint=COLLECTOR,
        otel_exporter_otlp_headers="api-key=abc, x-team = render ,broken,=empty",
    )

    telemetry._build_exporter(settings)

    assert exporter_calls == [{"endpoint": COLLECTOR, "headers": {"api-key": "abc", "x-team": "render"}}]


def test_exporter_without_headers(exporter_calls: list[dict[str, object]]) -> None:
    telemetry._build_exporter(Settings(otel_exporter_otlp_endpoint=COLLECTOR))

    assert exporter_calls == [{"endpoint": COLLECTOR}]


def test_exporter_falls_back_to_standard_env(
    exporter_calls: list[dict[str, object]], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", COLLECTOR)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "authorization=Bearer token")

    telemetry._build_exporter(Settings())

    assert exporter_calls == [{"endpoint": COLLECTOR, "headers": {"authorization": "Bearer token"}}]


def test_no_endpoint_keeps_spans_local(exporter_calls: list[dict[str, object]]) -> None:
    assert telemetry._build_exporter(Settings()) is None
    assert exporter_calls == []


def test_disabled_telemetry_is_a_no_op() -> None:
    runtime = setup_telemetry(Settings(otel_enabled=False))
    assert runtime.enabled is False
    assert runtime.provider is None
    shutdown_telemetry(runtime)


def test_settings_keep_render_credential_secret() -> None:
    settings = Settings(render_api_key="super-secret")
    assert "super-secret" not in repr(settings)
    assert settings.render_api_key.get_secret_value() == "super-secret"
