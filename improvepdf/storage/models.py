from dataclasses import dataclass


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful write."""

    url: str
    pathname: str
    size: int
    uploaded_at: str


@dataclass(frozen=True)
class ListedObject:
    """One entry of a prefix listing."""

    url: str
    pathname: str
    size: int = 0
    uploaded_at: str | None = None
