import pytest

from refresher_api.core.exceptions import RateLimitError
from refresher_api.core.rate_limit import UserRateLimiter


def test_limit_is_per_user_and_scope():
    limiter = UserRateLimiter("2/hour")

    limiter.check("topics:generate", "alice")
    limiter.check("topics:generate", "alice")
    with pytest.raises(RateLimitError) as exc:
        limiter.check("topics:generate", "alice")

    retry_after = int(exc.value.headers["Retry-After"])
    assert 0 < retry_after <= 3600
    assert exc.value.status_code == 429
    assert f"{retry_after} seconds" in exc.value.message

    limiter.check("topics:generate", "bob")
    limiter.check("other", "alice")


def test_disabled_limiter_never_raises():
    limiter = UserRateLimiter("1/hour", enabled=False)

    for _ in range(5):
        limiter.check("topics:generate", "alice")
