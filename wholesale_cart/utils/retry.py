from tenacity import retry, retry_if_exception, retry_if_exception_type, stop_after_attempt, wait_exponential
import requests
import redis


def is_transient_http_error(exc: BaseException) -> bool:
    """Connection drops, timeouts and 5xx answers; a 4xx will not change on retry."""
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(is_transient_http_error),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type((redis.ConnectionError, redis.TimeoutError)),
    )
