"""Request bodies for the HTTP shell."""

from pydantic import BaseModel, ConfigDict, Field

from fractal.models import GenerationOptions, GenerationRequest


class GenerationOptionsBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temperature: float | None = Field(None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(None, alias="maxTokens", gt=0)


class GenerationRequestBody(BaseModel):
    """``{url, provider?, options?: {temperature?, maxTokens?}}``"""

    url: str = Field(..., min_length=1)
    provider: str | None = None
    options: GenerationOptionsBody | None = None

    def to_request(self, normalized_url: str) -> GenerationRequest:
        options = self.options or GenerationOptionsBody()
        return GenerationRequest(
            url=normalized_url,
            provider=self.provider,
            options=GenerationOptions(
                temperature=options.temperature, max_tokens=options.max_tokens
            ),
        )
