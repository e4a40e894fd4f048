from collections.abc import Callable, Mapping
from typing import TypeVar

from intake.config.settings import Settings

T = TypeVar("T")


def build_backend(
    kind: str,
    choice: str,
    builders: Mapping[str, Callable[[Settings], T]],
    settings: Settings,
) -> T:
    """Build the implementation registered under ``choice`` (case-insensitive)."""
    name = choice.lower()
    builder = builders.get(name)
    if builder is None:
        raise ValueError(f"Unknown {kind} '{name}'. Choose from: {list(builders)}")
    return builder(settings)
