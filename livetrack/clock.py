"""Wall clock in epoch seconds. All expiry checks go through now()."""
import time


def now() -> int:
    return int(time.time())
