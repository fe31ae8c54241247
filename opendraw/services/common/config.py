# opendraw/services/common/config.py
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def parse_timeout(raw: Optional[str]) -> Optional[float]:
    """UPSTREAM_TIMEOUT(초). 비어 있으면 타임아웃 없음, 숫자가 아니면 기동 시 실패"""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"UPSTREAM_TIMEOUT must be a number of seconds, got {raw!r}") from None


GROK_API_HOST = os.getenv("GROK_API_HOST", "api.x.ai")
JIMENG_API_HOST = os.getenv("JIMENG_API_HOST", "sejktjafstpl.us-east-1.clawcloudrun.com")
UPSTREAM_TIMEOUT = parse_timeout(os.getenv("UPSTREAM_TIMEOUT"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
