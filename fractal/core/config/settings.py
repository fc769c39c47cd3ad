"""Application settings loaded from the environment schema."""

from collections.abc import Mapping
from dataclasses import dataclass

from fractal.core.config.schema import ConfigSchema
from fractal.core.config.validation import load_env_var


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of every schema-backed setting.

    Built once at startup and handed to the components that need it; nothing
    reads the environment after ``load()`` returns.
    """

    host: str = "127.0.0.1"
    port: int = 8787
    log_level: str = "INFO"
    request_timeout: int = 90
    default_temperature: float = 0.7
    default_max_tokens: int = 4000
    streaming_max_tokens: int = 60000
    stream_mode: str = "auto"
    cache_max_size: int = 100
    min_render_length: int = 100
    max_history_entries: int = 100

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from ``environ`` (the process environment by default).

        Raises:
            ConfigError: On the first variable that fails coercion or validation
        """

        def read(spec):
            return load_env_var(spec, environ)

        return cls(
            host=read(ConfigSchema.HOST),
            port=read(ConfigSchema.PORT),
            log_level=read(ConfigSchema.LOG_LEVEL),
            request_timeout=read(ConfigSchema.REQUEST_TIMEOUT),
            default_temperature=read(ConfigSchema.FRACTAL_DEFAULT_TEMPERATURE),
            default_max_tokens=read(ConfigSchema.FRACTAL_DEFAULT_MAX_TOKENS),
            streaming_max_tokens=read(ConfigSchema.FRACTAL_STREAMING_MAX_TOKENS),
            stream_mode=read(ConfigSchema.FRACTAL_STREAM_MODE),
            cache_max_size=read(ConfigSchema.FRACTAL_CACHE_MAX_SIZE),
            min_render_length=read(ConfigSchema.FRACTAL_MIN_RENDER_LENGTH),
            max_history_entries=read(ConfigSchema.FRACTAL_MAX_HISTORY_ENTRIES),
        )
