# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import anyio
import httpx
from lionherd_core.errors import ConnectionError
from pydantic import BaseModel, Field, PrivateAttr, SecretStr, field_validator, model_validator

from ..utilities.rate_limiter import SlidingWindowRateLimiter
from ..utilities.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    RetryConfig,
    retry_with_backoff,
)
from .response import ApiResponse

__all__ = (
    "Endpoint",
    "EndpointConfig",
    "TransientRequestError",
    "build_query",
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.unusualwhales.com"
API_KEY_ENV = "UW_API_KEY"
RATE_LIMIT_ENV = "UW_RATE_LIMIT_PER_MINUTE"
MAX_RETRIES_ENV = "UW_MAX_RETRIES"

REQUEST_TIMEOUT = 30.0
DEFAULT_RATE_LIMIT_PER_MINUTE = 120
DEFAULT_MAX_RETRIES = 3
BASE_RETRY_DELAY = 1.0
ERROR_PREVIEW_CHARS = 100

MISSING_API_KEY = f"{API_KEY_ENV} environment variable is not set"

QueryParams = Mapping[str, Any]


class TransientRequestError(ConnectionError):
    """A failure worth retrying: 5xx status, timeout or transport error."""

    default_message = "Transient request failure"
    default_retryable = True

    def __init__(self, message: str, *, status_code: int | None = None):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(message=message, details=details, retryable=True)
        self.reason = message
        self.status_code = status_code


def _int_or_default(value: Any, default: int, minimum: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_query(params: QueryParams | None) -> list[tuple[str, str]]:
    """Serialize query parameters into ordered key/value pairs.

    `None`, empty strings and `False` are dropped; sequences become one
    entry per element under the same key, with a `None` element sent as
    `null`.
    """
    query: list[tuple[str, str]] = []
    if not params:
        return query

    for key, value in params.items():
        if value is None or value == "" or value is False:
            continue
        if isinstance(value, list | tuple):
            query.extend((key, _stringify(item)) for item in value)
        else:
            query.append((key, _stringify(value)))
    return query


class EndpointConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    api_key: str | SecretStr | None = Field(None, exclude=True)
    timeout: float = REQUEST_TIMEOUT
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = BASE_RETRY_DELAY
    client_kwargs: dict = Field(default_factory=dict)
    _api_key: str | None = PrivateAttr(None)

    @field_validator("rate_limit_per_minute", mode="before")
    def _validate_rate_limit(cls, v):  # noqa: N805
        return _int_or_default(v, DEFAULT_RATE_LIMIT_PER_MINUTE, minimum=1)

    @field_validator("max_retries", mode="before")
    def _validate_max_retries(cls, v):  # noqa: N805
        return _int_or_default(v, DEFAULT_MAX_RETRIES, minimum=0)

    @field_validator("timeout")
    def _validate_timeout(cls, v: float):  # noqa: N805
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @model_validator(mode="after")
    def _validate_api_key(self):
        if isinstance(self.api_key, SecretStr):
            self._api_key = self.api_key.get_secret_value().strip() or None
        elif isinstance(self.api_key, str):
            self._api_key = self.api_key.strip() or None
        return self

    @property
    def has_api_key(self) -> bool:
        return self._api_key is not None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> EndpointConfig:
        """Build a config from `UW_*` environment variables.

        Invalid or missing integers fall back to their defaults.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {
            "api_key": env.get(API_KEY_ENV),
            "rate_limit_per_minute": env.get(RATE_LIMIT_ENV),
            "max_retries": env.get(MAX_RETRIES_ENV),
        }
        data = {k: v for k, v in data.items() if v is not None}
        data.update(overrides)
        return cls(**data)

    def full_url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class Endpoint:
    """Outbound client for the UnusualWhales API.

    Every attempt passes the rate limiter, then (if one is composed) the
    circuit breaker, then the HTTP call. Transient failures are retried with
    exponential backoff. `fetch` never raises; all outcomes are returned as
    an `ApiResponse`.
    """

    def __init__(
        self,
        config: dict | EndpointConfig | None = None,
        *,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        retry_config: RetryConfig | None = None,
        sleep_func: Callable[[float], Awaitable[Any]] | None = None,
    ):
        if config is None:
            config = EndpointConfig()
        elif isinstance(config, dict):
            config = EndpointConfig(**config)
        elif not isinstance(config, EndpointConfig):
            raise ValueError("Config must be a dict or EndpointConfig instance")

        self.config = config
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(config.rate_limit_per_minute)
        self.circuit_breaker = circuit_breaker
        self.retry_config = retry_config or RetryConfig(
            max_retries=config.max_retries,
            initial_delay=config.initial_delay,
            retry_on=(TransientRequestError,),
        )
        self._sleep = sleep_func

        logger.debug(
            f"Initialized Endpoint base_url={config.base_url}, "
            f"rate_limit={self.rate_limiter.max_requests}/min, "
            f"max_retries={self.retry_config.max_retries}, "
            f"circuit_breaker={circuit_breaker is not None}"
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        circuit_breaker: CircuitBreaker | None = None,
        **kwargs,
    ) -> Endpoint:
        """Compose an endpoint from the environment with a default circuit breaker."""
        return cls(
            EndpointConfig.from_env(environ),
            circuit_breaker=circuit_breaker or CircuitBreaker(name="unusualwhales"),
            **kwargs,
        )

    def _create_http_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client for requests."""
        return httpx.AsyncClient(
            timeout=self.config.timeout,
            **self.config.client_kwargs,
        )

    def create_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config._api_key}",
            "Accept": "application/json",
        }

    async def fetch(self, path: str, params: QueryParams | None = None) -> ApiResponse:
        """GET `path` with query `params` and return the envelope.

        Args:
            path: Endpoint path relative to the base URL. Interpolated
                segments must already be passed through `encode_path`.
            params: Query parameters; see `build_query` for the encoding.
        """
        if not self.config.has_api_key:
            logger.error(MISSING_API_KEY)
            return ApiResponse(error=MISSING_API_KEY)

        url = self.config.full_url(path)
        query = build_query(params)
        headers = self.create_headers()

        try:
            return await retry_with_backoff(
                self._attempt,
                url,
                query,
                headers,
                sleep_func=self._sleep,
                **self.retry_config.as_kwargs(),
            )
        except TransientRequestError as e:
            return ApiResponse(error=e.reason)
        except Exception as e:
            logger.exception(f"Unexpected failure fetching {path}")
            return ApiResponse(error=f"Request failed: {e}")

    async def _attempt(
        self, url: str, query: list[tuple[str, str]], headers: dict[str, str]
    ) -> ApiResponse:
        admission = await self.rate_limiter.try_acquire()
        if not admission.allowed:
            wait_seconds = math.ceil(admission.wait_time or 0)
            return ApiResponse(
                error=(
                    f"Rate limit exceeded ({self.rate_limiter.max_requests}/min). "
                    f"Try again in {wait_seconds} seconds."
                )
            )

        if self.circuit_breaker is None:
            return await self._call_http(url, query, headers)

        try:
            return await self.circuit_breaker.execute(self._call_http, url, query, headers)
        except CircuitBreakerOpenError as e:
            wait_seconds = math.ceil(e.retry_after or 0)
            return ApiResponse(
                error=(
                    "Circuit breaker is open - API temporarily unavailable. "
                    f"Try again in {wait_seconds}s"
                )
            )

    async def _call_http(
        self, url: str, query: list[tuple[str, str]], headers: dict[str, str]
    ) -> ApiResponse:
        """Issue one GET. Raises TransientRequestError for retryable outcomes."""
        try:
            # Whole-call deadline; httpx's own timeout only bounds each phase
            with anyio.fail_after(self.config.timeout):
                async with self._create_http_client() as client:
                    response = await client.get(url, params=query, headers=headers)
        except (httpx.TimeoutException, TimeoutError) as e:
            raise TransientRequestError("Request timed out") from e
        except httpx.RequestError as e:
            raise TransientRequestError(f"Request failed: {str(e) or type(e).__name__}") from e

        status = response.status_code
        if response.is_success:
            return self.parse_body(response.text)

        if status == 429:
            retry_after = response.headers.get("retry-after")
            wait_info = f" Retry after {retry_after} seconds." if retry_after else ""
            return ApiResponse(
                error=(
                    f"API rate limit exceeded (429).{wait_info} "
                    "You may be approaching your daily limit."
                )
            )

        message = f"API error ({status}): {response.text}"
        if status >= 500:
            raise TransientRequestError(message, status_code=status)
        return ApiResponse(error=message)

    @staticmethod
    def parse_body(text: str) -> ApiResponse:
        if not text:
            return ApiResponse(data={})
        try:
            return ApiResponse(data=json.loads(text, parse_constant=_reject_constant))
        except ValueError:
            return ApiResponse(error=f"Invalid JSON response: {text[:ERROR_PREVIEW_CHARS]}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.model_dump(exclude={"client_kwargs"}),
            "rate_limiter": self.rate_limiter.to_dict(),
            "retry_config": self.retry_config.to_dict(),
            "circuit_breaker": (self.circuit_breaker.to_dict() if self.circuit_breaker else None),
        }
