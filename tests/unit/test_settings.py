# pyright: reportAny=false
import pytest
from pydantic import ValidationError

from viewspace import ViewsSettings, load_settings, parse_string_value
from viewspace._settings import parse_env_vars


class TestParseStringValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("1.5", 1.5),
            ('{"a": 1}', {"a": 1}),
            ("[1, 2]", [1, 2]),
            ("{broken", "{broken"),
            ("layout", "layout"),
        ],
    )
    def test_parsing(self, value: str, expected: object) -> None:
        assert parse_string_value(value) == expected


class TestParseEnvVars:
    def test_reads_prefixed_variables(self) -> None:
        environ = {"VIEWSPACE_EXT": "j2", "VIEWSPACE_LAYOUT": "false", "HOME": "/root"}

        assert parse_env_vars(environ=environ) == {"ext": "j2", "layout": False}

    def test_skips_logging_variables(self) -> None:
        environ = {"VIEWSPACE_DEBUG": "1", "VIEWSPACE_LOG_LEVEL": "info"}

        assert parse_env_vars(environ=environ) == {}

    def test_custom_prefix(self) -> None:
        assert parse_env_vars("APP_", {"APP_ENGINE": "jinja2"}) == {"engine": "jinja2"}


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings(environ={})

        assert settings.layout == "layout"
        assert settings.ext == "hbs"
        assert settings.engine == "handlebars"
        assert settings.silent is False

    def test_options_override_environment(self) -> None:
        settings = load_settings({"ext": "j2"}, environ={"VIEWSPACE_EXT": "html"})

        assert settings.ext == "j2"

    def test_layout_can_be_disabled(self) -> None:
        assert load_settings({"layout": False}, environ={}).layout is False

    def test_extra_keys_are_kept(self) -> None:
        settings = load_settings({"site": "Example"}, environ={})

        assert settings.model_dump()["site"] == "Example"

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(ValidationError):
            _ = load_settings({"ext": ""}, environ={})

    def test_layout_true_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _ = ViewsSettings.model_validate({"layout": True})
