"""Environment variable schema.

Every setting Fractal reads from the environment is declared here once, with
its default, type, validation rule and the text used in generated docs.

Provider credentials are not part of the schema: they are read by
CredentialLoader, one per backend.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

STREAM_MODES = ("auto", "full", "text")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _first_word(value: str) -> str:
    # Tolerates "INFO  # comment" style values copied from .env files
    return value.split()[0].upper() if value.split() else value


@dataclass(frozen=True)
class EnvVarSpec:
    """One environment variable.

    Attributes:
        name: Variable name, e.g. ``PORT``
        default: Value used when the variable is unset
        type_hint: Target type the raw string is coerced to
        description: One-line description for generated docs
        section: Heading the variable is grouped under in docs
        validator: Optional predicate over the coerced value
        coerce: Optional replacement for the default str -> type coercion
    """

    name: str
    default: Any
    type_hint: type
    description: str
    section: str = "General"
    validator: Callable[[Any], bool] | None = None
    coerce: Callable[[str], Any] | None = None


def _positive(x: int) -> bool:
    return x > 0


class ConfigSchema:
    """All schema-backed settings, declared as class attributes."""

    HOST = EnvVarSpec(
        name="HOST",
        default="127.0.0.1",
        type_hint=str,
        description="HTTP shell host address to bind to",
        section="Server",
    )
    PORT = EnvVarSpec(
        name="PORT",
        default=8787,
        type_hint=int,
        description="HTTP shell port number",
        section="Server",
        validator=lambda x: 1 <= x <= 65535,
    )
    LOG_LEVEL = EnvVarSpec(
        name="LOG_LEVEL",
        default="INFO",
        type_hint=str,
        description="Root log level",
        section="Server",
        validator=lambda x: x in LOG_LEVELS,
        coerce=_first_word,
    )

    REQUEST_TIMEOUT = EnvVarSpec(
        name="REQUEST_TIMEOUT",
        default=90,
        type_hint=int,
        description="Timeout in seconds handed to backend HTTP clients",
        section="Backends",
        validator=_positive,
    )

    FRACTAL_DEFAULT_TEMPERATURE = EnvVarSpec(
        name="FRACTAL_DEFAULT_TEMPERATURE",
        default=0.7,
        type_hint=float,
        description="Sampling temperature used when a request does not set one",
        section="Generation",
        validator=lambda x: 0.0 <= x <= 2.0,
    )
    FRACTAL_DEFAULT_MAX_TOKENS = EnvVarSpec(
        name="FRACTAL_DEFAULT_MAX_TOKENS",
        default=4000,
        type_hint=int,
        description="Max output tokens for blocking generations",
        section="Generation",
        validator=_positive,
    )
    FRACTAL_STREAMING_MAX_TOKENS = EnvVarSpec(
        name="FRACTAL_STREAMING_MAX_TOKENS",
        default=60000,
        type_hint=int,
        description="Max output tokens for streamed generations",
        section="Generation",
        validator=_positive,
    )
    FRACTAL_STREAM_MODE = EnvVarSpec(
        name="FRACTAL_STREAM_MODE",
        default="auto",
        type_hint=str,
        description="Stream flavor: auto (rich events, then text), full, or text",
        section="Generation",
        validator=lambda x: x in STREAM_MODES,
        coerce=lambda s: s.strip().lower(),
    )

    FRACTAL_CACHE_MAX_SIZE = EnvVarSpec(
        name="FRACTAL_CACHE_MAX_SIZE",
        default=100,
        type_hint=int,
        description="Maximum number of cached generation responses",
        section="Cache",
        validator=_positive,
    )

    FRACTAL_MIN_RENDER_LENGTH = EnvVarSpec(
        name="FRACTAL_MIN_RENDER_LENGTH",
        default=100,
        type_hint=int,
        description="Minimum document length before a partial page is rendered",
        section="Viewer",
        validator=lambda x: x >= 0,
    )
    FRACTAL_MAX_HISTORY_ENTRIES = EnvVarSpec(
        name="FRACTAL_MAX_HISTORY_ENTRIES",
        default=100,
        type_hint=int,
        description="Maximum number of navigation history entries",
        section="Viewer",
        validator=_positive,
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Attribute name -> spec, in declaration order."""
        return {name: value for name, value in vars(cls).items() if isinstance(value, EnvVarSpec)}

    @classmethod
    def get_spec(cls, name: str) -> EnvVarSpec | None:
        return next((spec for spec in cls.all_specs().values() if spec.name == name), None)

    @classmethod
    def generate_markdown_docs(cls) -> str:
        """Render the schema as Markdown, one table per section."""
        sections: dict[str, list[EnvVarSpec]] = {}
        for spec in cls.all_specs().values():
            sections.setdefault(spec.section, []).append(spec)

        out = ["# Configuration", "", "Generated from `ConfigSchema`.", ""]
        for section, specs in sections.items():
            out += [f"## {section}", "", "| Variable | Type | Default | Description |", "|---|---|---|---|"]
            out += [
                f"| `{s.name}` | `{s.type_hint.__name__}` | `{s.default}` | {s.description} |"
                for s in specs
            ]
            out.append("")
        return "\n".join(out)
