"""Application constants shared by the generation core and its host shells."""

from dataclasses import dataclass

APP_NAME = "Fractal"
APP_DESCRIPTION = (
    "AI-powered web browser that generates website content using Large Language Models"
)


@dataclass(frozen=True, slots=True)
class BackendSpec:
    """Static description of one supported LLM backend."""

    id: str
    name: str
    default_model: str
    env_prefix: str
    default_base_url: str
    models: tuple[str, ...]

    @property
    def credential_env_var(self) -> str:
        return f"{self.env_prefix}_API_KEY"

    @property
    def model_env_var(self) -> str:
        return f"{self.env_prefix}_MODEL"

    @property
    def base_url_env_var(self) -> str:
        return f"{self.env_prefix}_BASE_URL"


# Registration order matters: the first configured backend becomes the default.
BACKENDS: tuple[BackendSpec, ...] = (
    BackendSpec(
        id="openai",
        name="OpenAI GPT-4",
        default_model="gpt-4o",
        env_prefix="OPENAI",
        default_base_url="https://api.openai.com/v1",
        models=(
            "gpt-4o",
            "gpt-4o-mini",
            "gpt-4-turbo",
            "gpt-4",
            "gpt-3.5-turbo",
            "gpt-3.5-turbo-0125",
            "o1",
            "o3",
            "o3-mini",
        ),
    ),
    BackendSpec(
        id="anthropic",
        name="Anthropic Claude",
        default_model="claude-sonnet-4-20250514",
        env_prefix="ANTHROPIC",
        default_base_url="https://api.anthropic.com",
        models=(
            "claude-3-5-sonnet-20241022",
            "claude-3-opus-20240229",
            "claude-3-haiku-20240307",
            "claude-3-5-sonnet-latest",
            "claude-3-opus-latest",
            "claude-3-5-haiku-latest",
            "claude-3-5-sonnet-20240620",
            "claude-3-5-haiku-20241022",
            "claude-opus-4-20250514",
            "claude-sonnet-4-20250514",
            "claude-3-7-sonnet-20250219",
        ),
    ),
    BackendSpec(
        id="google",
        name="Google Gemini",
        default_model="gemini-1.5-flash",
        env_prefix="GOOGLE",
        default_base_url="https://generativelanguage.googleapis.com",
        models=(
            "gemini-1.5-flash",
            "gemini-1.5-pro",
            "gemini-2.0-flash",
            "gemini-2.5-pro",
            "gemini-2.5-flash",
            "gemini-2.5-flash-lite",
            "gemini-pro",
            "gemini-pro-vision",
        ),
    ),
)

BACKENDS_BY_ID: dict[str, BackendSpec] = {spec.id: spec for spec in BACKENDS}


@dataclass(frozen=True, slots=True)
class WebsiteTemplate:
    type: str  # noqa: A003
    name: str
    description: str


# Reference catalog only; prompts never hardcode per-template content.
WEBSITE_TEMPLATES: tuple[WebsiteTemplate, ...] = (
    WebsiteTemplate("search", "Search Engine", "Google-like search interface"),
    WebsiteTemplate("social", "Social Media", "Social networking platform"),
    WebsiteTemplate("news", "News Website", "News and media outlet"),
    WebsiteTemplate("ecommerce", "E-commerce Store", "Online shopping platform"),
    WebsiteTemplate("blog", "Blog Platform", "Personal or corporate blog"),
    WebsiteTemplate("corporate", "Corporate Website", "Business or organization site"),
    WebsiteTemplate("wiki", "Wiki/Encyclopedia", "Wikipedia and wiki-style sites"),
)

ALLOWED_URL_SCHEMES = ("http", "https")
MAX_URL_LENGTH = 2048

# Rough heuristic used until a backend reports real usage.
CHARS_PER_TOKEN = 4
