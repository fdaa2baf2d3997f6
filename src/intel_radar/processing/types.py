from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Callable, Union


@dataclass(frozen=True)
class FeedSource:
    url: str
    category: str  # "policy" | "tech" | "other"


@dataclass(frozen=True)
class Article:
    title: str
    link: str
    published_at: datetime.datetime | None
    category: str


@dataclass(frozen=True)
class CandidateResult:
    candidates: list[Article]
    total_articles: int
    phases: int
    widened: bool
    sufficient: bool


# -----------------------------
# Provider 결과 (예외 대신 태그된 결과로 전달)
# -----------------------------
@dataclass(frozen=True)
class Success:
    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ProviderResult = Union[Success, Failure]


@dataclass(frozen=True)
class ProviderAttempt:
    provider_id: str
    result: ProviderResult
    latency_sec: float


@dataclass(frozen=True)
class SelectionOutcome:
    titles: list[str]
    source: str  # "memo" | "draft" | "repaired" | "fallback" | "short_circuit"
    reason: str = ""  # short_circuit일 때 두 백엔드의 실패 사유


@dataclass(frozen=True)
class RelinkedItem:
    title: str
    url: str
    score: float


@dataclass
class DigestRun:
    text: str
    candidates: list[Article] = field(default_factory=list)
    selection: SelectionOutcome | None = None
    picked: list[RelinkedItem] = field(default_factory=list)
    tone: str = ""
    cached: bool = False
    elapsed_ms: int = 0


LogFunc = Callable[[str], None]
