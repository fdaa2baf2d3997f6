from __future__ import annotations

import datetime
import os
from pathlib import Path

from dotenv import load_dotenv

_repo_root = Path(__file__).resolve().parents[3]
load_dotenv(dotenv_path=_repo_root / ".env")


def _parse_csv_env(name: str) -> list[str]:
    """CSV 형태의 환경변수를 리스트로 파싱."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return raw in {"1", "true", "True", "yes", "YES"}


# ==========================================
# AI 백엔드
# ==========================================

GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")

# 두 답변이 모두 성공했을 때 조정(reconciliation)을 맡을 백엔드
AI_MODEL = (os.getenv("AI_MODEL", "gemini") or "gemini").strip().lower()
if AI_MODEL not in {"gemini", "openai"}:
    # 'gpt'는 예전 설정값 호환
    AI_MODEL = "openai" if AI_MODEL == "gpt" else "gemini"

PROVIDER_TIMEOUT_SEC = _env_float("INTEL_PROVIDER_TIMEOUT_SEC", 12.0)
RECONCILE_TEMPERATURE = 0.5

# ==========================================
# 단계별 타임아웃
# ==========================================

FEED_TIMEOUT_MS = _env_int("INTEL_FEED_TIMEOUT_MS", 5000)
SELECT_TIMEOUT_SEC = _env_float("INTEL_SELECT_TIMEOUT_SEC", 8.0)
REPAIR_TIMEOUT_SEC = _env_float("INTEL_REPAIR_TIMEOUT_SEC", 4.0)
FORMAT_TIMEOUT_SEC = _env_float("INTEL_FORMAT_TIMEOUT_SEC", 10.0)
FORMAT_FIX_TIMEOUT_SEC = _env_float("INTEL_FORMAT_FIX_TIMEOUT_SEC", 6.0)
TONE_TIMEOUT_SEC = _env_float("INTEL_TONE_TIMEOUT_SEC", 4.0)
USER_AGENT = os.getenv("INTEL_USER_AGENT", "Mozilla/5.0")

# ==========================================
# 후보 필터
# ==========================================

MAX_CANDIDATES = _env_int("INTEL_MAX_CANDIDATES", 60)
DEFAULT_WINDOW_DAYS = _env_int("INTEL_DEFAULT_WINDOW_DAYS", 2)
POLICY_WINDOW_DAYS = _env_int("INTEL_POLICY_WINDOW_DAYS", 3)
UTC_OFFSET_HOURS = _env_int("INTEL_UTC_OFFSET_HOURS", 9)
LOCAL_TZ = datetime.timezone(datetime.timedelta(hours=UTC_OFFSET_HOURS))

# ==========================================
# 캐시 TTL (초)
# ==========================================

CACHE_DEFAULT_TTL_SEC = 300
SELECTION_TTL_SEC = _env_int("INTEL_SELECTION_TTL_SEC", 60 * 60 * 12)
DIGEST_TTL_SEC = _env_int("INTEL_DIGEST_TTL_SEC", 60 * 60)
INTERESTS_TTL_SEC = _env_int("INTEL_INTERESTS_TTL_SEC", 600)

# ==========================================
# 관심사 / 출력
# ==========================================

INTERESTS = _parse_csv_env("INTEL_INTERESTS")
DEFAULT_INTEREST_PROFILE = "geopolitics, technology"
DIGEST_LANGUAGE = os.getenv("INTEL_DIGEST_LANGUAGE", "Korean").strip() or "Korean"
TONE_ENABLED = _env_bool("INTEL_TONE_ENABLED", False)
