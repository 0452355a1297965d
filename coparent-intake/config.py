import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class Config:
    anthropic_api_key: str | None
    model: str = DEFAULT_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    from_email: str | None = None
    aws_region: str = DEFAULT_REGION

    @property
    def has_credential(self) -> bool:
        return bool(self.anthropic_api_key)


def load_config(environ=None) -> Config:
    """
    Build a Config from the process environment (or a given mapping).
    A missing API key is only logged here; generation calls fail later.
    """
    env = os.environ if environ is None else environ

    api_key = env.get("ANTHROPIC_API_KEY", "").strip() or None
    if api_key is None:
        logger.warning("ANTHROPIC_API_KEY not set. Report, draft and evidence calls will fail.")

    raw_timeout = env.get("ANTHROPIC_TIMEOUT_SECONDS", "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        logger.warning("Invalid ANTHROPIC_TIMEOUT_SECONDS | value=%s", raw_timeout)
        timeout = DEFAULT_TIMEOUT_SECONDS

    return Config(
        anthropic_api_key=api_key,
        model=env.get("ANTHROPIC_MODEL", "").strip() or DEFAULT_MODEL,
        timeout_seconds=timeout,
        from_email=env.get("FROM_EMAIL", "").strip() or None,
        aws_region=env.get("AWS_REGION", DEFAULT_REGION),
    )
