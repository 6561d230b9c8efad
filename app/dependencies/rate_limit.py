import logging
import math
from datetime import UTC, datetime, timedelta

from fastapi import Request

from configs import app_config
from exceptions.common import RateLimitError
from libs.helper import extract_remote_ip
from libs.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

rate_limiter = RateLimiter(
    max_attempts=app_config.RATE_LIMIT_MAX_REQUESTS,
    time_window=app_config.RATE_LIMIT_WINDOW_SECONDS,
)


async def check_rate_limit(request: Request) -> None:
    if not app_config.RATE_LIMIT_ENABLED:
        return

    client_key = extract_remote_ip(request)
    decision = rate_limiter.check(client_key)
    if decision.allowed:
        return

    retry_after = max(1, math.ceil(decision.retry_after))
    reset_time = datetime.now(UTC) + timedelta(seconds=decision.retry_after)
    logger.info(
        f"Rate limit exceeded for {client_key} "
        f"({decision.current_count}/{rate_limiter.max_attempts} per {rate_limiter.time_window:g}s, "
        f"{rate_limiter.tracked_clients()} client(s) tracked)"
    )
    raise RateLimitError(
        detail="Rate limit exceeded",
        headers={"Retry-After": str(retry_after)},
        resetTime=reset_time.isoformat().replace("+00:00", "Z"),
    )
