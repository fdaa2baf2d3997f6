from __future__ import annotations

from typing import Callable, Optional

from intel_radar.processing.types import Article, RelinkedItem
from intel_radar.utils import jaccard_tokens


class Relinker:
    """모델이 바꿔 쓴 제목을 토큰 Jaccard 최대 후보의 원문 URL에 다시 연결한다."""

    def __init__(self, *, similarity_func: Callable[[str, str], float] = jaccard_tokens) -> None:
        self._similarity = similarity_func

    def best_match(self, selected: str, candidates: list[Article]) -> tuple[Optional[Article], float]:
        best: Optional[Article] = None
        best_score = -1.0
        for candidate in candidates:
            score = self._similarity(selected, candidate.title)
            # 동점이면 먼저 본 후보 유지
            if score > best_score:
                best, best_score = candidate, score
        return best, max(0.0, best_score)

    def relink(self, titles: list[str], candidates: list[Article]) -> list[RelinkedItem]:
        picked: list[RelinkedItem] = []
        for title in titles:
            match, score = self.best_match(title, candidates)
            url = match.link if match is not None else ""
            picked.append(RelinkedItem(title=title, url=url, score=score))
        return picked
