import pytest
from pydantic import ValidationError

from betternotes.core.config import Settings, build_config_report
from betternotes.utils.formatters import format_error_response


def test_defaults():
    config = Settings(_env_file=None)

    assert config.PORT == 4000
    assert config.LATEX_TIMEOUT_MS == 30000
    assert config.latex_timeout_seconds == 30.0
    assert config.LATEX_MAX_LOG_CHARS == 60000


@pytest.mark.parametrize("field", ["LATEX_TIMEOUT_MS", "LATEX_MAX_BUFFER_BYTES", "LATEX_MAX_LOG_CHARS"])
def test_non_positive_limits_are_rejected(field):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: 0})


def test_allowed_origins_are_split():
    config = Settings(_env_file=None, ALLOWED_ORIGINS="https://a.example, https://b.example,")
    assert config.allowed_origins == ["https://a.example", "https://b.example"]


def test_healthy_config_has_no_warnings(tmp_path):
    config = Settings(_env_file=None, TEMPLATE_DIR=str(tmp_path))
    assert build_config_report(config, exists=lambda name: name == "pdflatex") == []


def test_config_report_warnings(tmp_path):
    config = Settings(
        _env_file=None,
        TEMPLATE_DIR=str(tmp_path / "missing"),
        LATEX_TIMEOUT_MS=1000,
        LATEX_MAX_LOG_CHARS=5000,
        LATEX_MAX_BUFFER_BYTES=1000,
    )

    warnings = build_config_report(config, exists=lambda name: False)

    assert len(warnings) == 4
    assert any("TEMPLATE_DIR" in warning for warning in warnings)
    assert any("TOOLING_MISSING" in warning for warning in warnings)
    assert any("per-process capture" in warning for warning in warnings)
    assert not any("never reach" in warning for warning in warnings)


def test_error_envelope_omits_empty_fields():
    assert format_error_response("bad") == {"ok": False, "error": "bad"}
    assert format_error_response("bad", code="COMPILE_FAILED", log="tail") == {
        "ok": False,
        "error": "bad",
        "code": "COMPILE_FAILED",
        "log": "tail",
    }
