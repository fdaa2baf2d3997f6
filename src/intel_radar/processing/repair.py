from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from intel_radar.processing.types import Failure, ProviderResult

T = TypeVar("T")

Producer = Callable[[], Awaitable[ProviderResult]]
Validator = Callable[[ProviderResult], Optional[T]]
Repairer = Callable[[ProviderResult], Awaitable[ProviderResult]]
Fallback = Callable[[ProviderResult, Optional[ProviderResult]], T]


@dataclass(frozen=True)
class RepairOutcome(Generic[T]):
    value: T
    source: str  # "draft" | "repaired" | "fallback" | "short_circuit"
    draft: ProviderResult
    repaired: ProviderResult | None = None


async def validate_with_repair(
    produce: Producer,
    validate: Validator[T],
    repair: Repairer,
    fallback: Fallback[T],
) -> RepairOutcome[T]:
    """produce → 검증 → 교정 프롬프트 1회 → 재검증 → 결정적 fallback.

    초안이 Failure(두 백엔드 모두 실패)면 교정을 건너뛰고 바로 fallback한다.
    fallback은 예외를 던지지 않아야 한다.
    """
    draft = await produce()
    if isinstance(draft, Failure):
        return RepairOutcome(fallback(draft, None), "short_circuit", draft)

    value = validate(draft)
    if value is not None:
        return RepairOutcome(value, "draft", draft)

    repaired = await repair(draft)
    value = validate(repaired)
    if value is not None:
        return RepairOutcome(value, "repaired", draft, repaired)
    return RepairOutcome(fallback(draft, repaired), "fallback", draft, repaired)
