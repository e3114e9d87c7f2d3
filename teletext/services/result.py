# FILE: teletext/services/result.py
"""
Result type separating "not configured" from transient failures

A missing credential is a permanent condition that should be shown as setup
instructions, not retried. Operations that can hit it return a FetchResult;
transient failures still raise ExternalAPIError.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ConfigError:
    service: str
    setting: str
    message: str
    signup_url: Optional[str] = None


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    value: Optional[T] = None
    config_error: Optional[ConfigError] = None

    @property
    def ok(self) -> bool:
        return self.config_error is None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def unconfigured(cls, service: str, setting: str, signup_url: Optional[str] = None) -> "FetchResult[T]":
        return cls(config_error=ConfigError(
            service=service,
            setting=setting,
            message=f"{service} is not configured. Set {setting} to enable it.",
            signup_url=signup_url,
        ))
