"""Results of a Flickr method call."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class Results(BaseModel):
    """Decoded answer of one API method."""
    method: str = Field(description="Full method name, e.g. flickr.photos.search")
    stat: str = Field(default="ok", description="Status reported by Flickr")
    data: Dict[str, Any] = Field(default_factory=dict, description="Payload without the status")
    cached: bool = Field(default=False, description="Whether the payload came from the cache")

    @classmethod
    def from_payload(cls, method: str, payload: Dict[str, Any], cached: bool = False) -> "Results":
        data = dict(payload)
        stat = data.pop("stat", "ok")
        return cls(method=method, stat=stat, data=data, cached=cached)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a nested value by dotted key, e.g. ``photos.page``."""
        current: Any = self.data
        for segment in key.split("."):
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
                current = current[int(segment)]
            else:
                return default
        return current

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def to_dict(self) -> Dict[str, Any]:
        """The payload as Flickr sent it, status included."""
        return {**self.data, "stat": self.stat}
