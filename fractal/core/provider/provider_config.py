from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Provider:
    """Configuration for one enabled backend"""

    id: str  # noqa: A003
    name: str
    api_key: str
    model: str
    base_url: str
    enabled: bool = True

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def to_dict(self) -> dict[str, Any]:
        """Public view; never includes the credential."""
        return {"id": self.id, "name": self.name, "enabled": self.enabled}
