"""Health ratio and status for lending positions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Literal

HealthStatus = Literal["Healthy", "Warning", "Danger"]

DANGER_BELOW = 1.10
WARNING_BELOW = 1.25
NO_DEBT_HEALTH = 2.0


def compute_health(supplied_usd: float, borrowed_usd: float) -> float:
    """``supplied / borrowed`` when both legs are positive, else the no-debt default."""

    if borrowed_usd > 0 and supplied_usd > 0:
        return supplied_usd / borrowed_usd
    if borrowed_usd > 0:
        return 0.0
    return NO_DEBT_HEALTH


def classify_health(health: float) -> HealthStatus:
    if health < DANGER_BELOW:
        return "Danger"
    if health < WARNING_BELOW:
        return "Warning"
    return "Healthy"


@dataclass(frozen=True)
class UserPosition:
    """One token inside one lending position, carrying both legs."""

    position_id: str
    position_name: str
    token_address: str
    token_symbol: str
    supplied: float = 0.0
    supplied_usd: float = 0.0
    borrowed: float = 0.0
    borrowed_usd: float = 0.0
    health: float = NO_DEBT_HEALTH
    health_status: HealthStatus = "Healthy"

    def rescored(self) -> "UserPosition":
        health = compute_health(self.supplied_usd, self.borrowed_usd)
        return replace(self, health=health, health_status=classify_health(health))


def merge_leg(
    position: UserPosition,
    *,
    supplied: float = 0.0,
    supplied_usd: float = 0.0,
    borrowed: float = 0.0,
    borrowed_usd: float = 0.0,
) -> UserPosition:
    """Add a leg to an existing record; health is always recomputed."""

    merged = replace(
        position,
        supplied=position.supplied + supplied,
        supplied_usd=position.supplied_usd + supplied_usd,
        borrowed=position.borrowed + borrowed,
        borrowed_usd=position.borrowed_usd + borrowed_usd,
    )
    return merged.rescored()


def score_position(records: Iterable[UserPosition]) -> list[UserPosition]:
    """Give every token record of one position the position-wide health.

    A collateralised borrow leg sits on its own token record with nothing
    supplied, so the ratio is taken over the summed legs of the position.
    """

    records = list(records)
    health = compute_health(
        sum(record.supplied_usd for record in records),
        sum(record.borrowed_usd for record in records),
    )
    status = classify_health(health)
    return [replace(record, health=health, health_status=status) for record in records]


__all__ = [
    "DANGER_BELOW",
    "NO_DEBT_HEALTH",
    "WARNING_BELOW",
    "HealthStatus",
    "UserPosition",
    "classify_health",
    "compute_health",
    "merge_leg",
    "score_position",
]
