"""Environment-driven configuration.

- schema: declarative EnvVarSpec registry
- validation: coercion, validation and ConfigError
- settings: the immutable Settings snapshot handed to components
"""

from fractal.core.config.schema import ConfigSchema, EnvVarSpec
from fractal.core.config.settings import Settings
from fractal.core.config.validation import ConfigError, load_env_var, validate_all

__all__ = [
    "ConfigError",
    "ConfigSchema",
    "EnvVarSpec",
    "Settings",
    "load_env_var",
    "validate_all",
]
