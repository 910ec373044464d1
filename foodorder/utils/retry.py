# foodorder/utils/retry.py
from tenacity import (
    Retrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    wait_random,
)
import requests
import redis


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def conflict_retrying(exc_type: type[BaseException], attempts: int, wait_max: float = 0.0) -> Retrying:
    """
    Petla retry dla konfliktow na unikalnym ograniczeniu (compare-and-swap).
    wait_max > 0 dodaje losowy jitter miedzy probami, zeby rownolegle
    zapytania nie trafialy znowu w ten sam licznik.
    """
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_random(0, wait_max) if wait_max > 0 else wait_none(),
        retry=retry_if_exception_type(exc_type),
    )
