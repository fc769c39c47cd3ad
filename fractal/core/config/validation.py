"""Turns raw environment strings into typed, validated setting values."""

import os
from collections.abc import Callable, Mapping
from typing import Any

from fractal.core.config.schema import ConfigSchema, EnvVarSpec


class ConfigError(Exception):
    """A setting could not be coerced or failed its validator.

    Attributes:
        env_var: The environment variable name
        value: The raw string that was rejected
        message: What was wrong with it
    """

    def __init__(self, env_var: str, value: str, message: str) -> None:
        self.env_var = env_var
        self.value = value
        self.message = message
        super().__init__(f"{env_var}={value}: {message}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


_COERCERS: dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    str: str,
}


def _coerce(spec: EnvVarSpec, raw: str) -> Any:
    convert = spec.coerce or _COERCERS.get(spec.type_hint, str)
    try:
        return convert(raw)
    except (ValueError, TypeError) as e:
        raise ConfigError(spec.name, raw, f"Cannot convert to {spec.type_hint.__name__}: {e}") from e


def _check(spec: EnvVarSpec, raw: str, value: Any) -> None:
    if spec.validator is None:
        return
    try:
        valid = spec.validator(value)
    except TypeError as e:
        raise ConfigError(spec.name, raw, f"Validation error: {e}") from e
    if not valid:
        raise ConfigError(spec.name, raw, f"Invalid value for {spec.type_hint.__name__} setting")


def load_env_var(spec: EnvVarSpec, environ: Mapping[str, str] | None = None) -> Any:
    """Read one variable: default when unset, otherwise coerce then validate.

    Raises:
        ConfigError: If coercion or validation fails
    """
    source = os.environ if environ is None else environ
    raw = source.get(spec.name)
    if raw is None:
        return spec.default

    value = _coerce(spec, raw)
    _check(spec, raw, value)
    return value


def validate_all(environ: Mapping[str, str] | None = None) -> list[ConfigError]:
    """Check every schema variable and return all problems at once.

    Example:
        for error in validate_all():
            console.print(f"[red]{error}[/red]")
    """
    errors: list[ConfigError] = []
    for spec in ConfigSchema.all_specs().values():
        try:
            load_env_var(spec, environ)
        except ConfigError as e:
            errors.append(e)
    return errors
