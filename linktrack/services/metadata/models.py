from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Metadata:
    """Preview metadata of one article. Computed per request, never stored."""
    title: str
    description: str = ""
    image: Optional[str] = None
