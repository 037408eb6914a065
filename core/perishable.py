"""
Perishable values - fresh or stale, never empty.

A value read from the chain is Fresh until something we did (approve,
disapprove) makes it known-outdated. It then becomes Stale but keeps the last
value seen, so the page can still show a plausible number while re-polling.
Replace a Stale value with a Fresh one ASAP, normally by polling.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Fresh(Generic[T]):
    value: T

    @property
    def is_fresh(self) -> bool:
        return True

    @property
    def latest(self) -> T:
        return self.value


@dataclass(frozen=True)
class Stale(Generic[T]):
    last_value: T

    @property
    def is_fresh(self) -> bool:
        return False

    @property
    def latest(self) -> T:
        return self.last_value


Perishable = Union[Fresh[T], Stale[T]]


def invalidate(value: "Perishable[T]") -> "Stale[T]":
    """Mark a value stale, carrying whatever was last seen."""
    return Stale(value.latest)


def is_truly_fresh(previous: Optional["Perishable[T]"], observed: T) -> bool:
    """
    Whether a newly observed value may replace `previous` as Fresh.

    True for the first observation ever, or when the observation differs from
    the last value seen. An equal read after invalidation means the chain has
    not caught up with our action yet.
    """
    if previous is None:
        return True
    return previous.latest != observed
