"""Generate a signed JWT for authenticating against the MCP gateway.

Environment variables:
    MCP_JWT_SECRET - Secret key for signing (required, at least 32 characters)
    TOKEN_SUBJECT  - User/client identifier (default: claude-code-user)
    TOKEN_ROLE     - Role: admin or user (default: user)
    TOKEN_EXPIRY   - Expiry time, e.g. 24h, 7d, 90m (default: 24h)
    LOG_LEVEL      - Diagnostic log level written to stderr (default: WARNING)
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import os
import re
import sys
import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import jwt
from env_utils import ConfigurationError, get_env, load_env_file

# The issuer and audience must match the values in the gateway's JWT policy.
ISSUER = "claude-code-gateway"
AUDIENCE = "mcp-servers"
ALGORITHM = "HS256"

SECRET_ENV = "MCP_JWT_SECRET"
MIN_SECRET_LENGTH = 32

DEFAULT_SUBJECT = "claude-code-user"
DEFAULT_ROLE = "user"
DEFAULT_EXPIRY = "24h"

GATEWAY_URL = "http://localhost:3001/mcp/filesystem"
CURL_PREVIEW_LENGTH = 20
CONFIG_PREVIEW_LENGTH = 50

_SECOND = 1000.0
_MINUTE = _SECOND * 60
_HOUR = _MINUTE * 60
_DAY = _HOUR * 24
_WEEK = _DAY * 7
_YEAR = _DAY * 365.25

# Milliseconds per unit; a bare number is already milliseconds.
_UNIT_MS = {
    "years": _YEAR, "year": _YEAR, "yrs": _YEAR, "yr": _YEAR, "y": _YEAR,
    "weeks": _WEEK, "week": _WEEK, "w": _WEEK,
    "days": _DAY, "day": _DAY, "d": _DAY,
    "hours": _HOUR, "hour": _HOUR, "hrs": _HOUR, "hr": _HOUR, "h": _HOUR,
    "minutes": _MINUTE, "minute": _MINUTE, "mins": _MINUTE, "min": _MINUTE, "m": _MINUTE,
    "seconds": _SECOND, "second": _SECOND, "secs": _SECOND, "sec": _SECOND, "s": _SECOND,
    "milliseconds": 1.0, "millisecond": 1.0, "msecs": 1.0, "msec": 1.0, "ms": 1.0,
}

_EXPIRY_PATTERN = re.compile(
    r"(?P<amount>-?\d*\.?\d+) *(?P<unit>"
    r"milliseconds?|msecs?|ms|seconds?|secs?|s|minutes?|mins?|m|"
    r"hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)?",
    re.IGNORECASE | re.ASCII,
)
_MAX_EXPIRY_LENGTH = 100


class ExpiryFormatError(ValueError):
    """Raised when an expiry string is not a recognised timespan."""


@dataclass(slots=True)
class TokenSettings:
    """Inputs for a single token, resolved from the environment and CLI."""

    secret: str
    subject: str = DEFAULT_SUBJECT
    role: str = DEFAULT_ROLE
    expiry: str = DEFAULT_EXPIRY

    def __repr__(self) -> str:
        return (
            f"TokenSettings(secret='***', subject={self.subject!r}, "
            f"role={self.role!r}, expiry={self.expiry!r})"
        )


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    subject: str | None = None,
    role: str | None = None,
    expiry: str | None = None,
) -> TokenSettings:
    """Resolve token settings, preferring explicit values over the environment.

    Raises :class:`ConfigurationError` if the secret is missing or too short.
    """

    secret = get_env(SECRET_ENV, "", environ)
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"{SECRET_ENV} must be at least {MIN_SECRET_LENGTH} characters",
            hint=f"Set it with: export {SECRET_ENV}=your-secret-key-min-32-characters!!",
        )

    return TokenSettings(
        secret=secret,
        subject=subject if subject is not None else get_env("TOKEN_SUBJECT", DEFAULT_SUBJECT, environ),
        role=role if role is not None else get_env("TOKEN_ROLE", DEFAULT_ROLE, environ),
        expiry=expiry if expiry is not None else get_env("TOKEN_EXPIRY", DEFAULT_EXPIRY, environ),
    )


def build_claims(settings: TokenSettings, now: float | None = None) -> dict[str, Any]:
    """Build the claims payload for ``settings``; ``exp`` is added at signing time."""

    issued_at = int(time.time() if now is None else now)
    return {
        "sub": settings.subject,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "role": settings.role,
        "iat": issued_at,
        # Custom claims for the gateway's authorization rules
        "permissions": {
            "read": True,
            "write": settings.role == "admin",
            "delete": False,
        },
    }


def parse_expiry(value: str) -> float:
    """Convert a timespan such as ``"24h"`` or ``"1.5 days"`` into seconds.

    A number without a unit is taken as milliseconds.
    """

    if not value or len(value) > _MAX_EXPIRY_LENGTH:
        raise ExpiryFormatError(f"Invalid token expiry: {value!r}")
    match = _EXPIRY_PATTERN.fullmatch(value)
    if match is None:
        raise ExpiryFormatError(f"Invalid token expiry: {value!r}")

    unit = (match.group("unit") or "ms").lower()
    milliseconds = float(match.group("amount")) * _UNIT_MS[unit]
    return milliseconds / _SECOND


def create_jwt(claims: Mapping[str, Any], secret: str, expires_in: str) -> str:
    """Sign ``claims`` with HS256, adding an ``exp`` relative to their ``iat``."""

    payload = dict(claims)
    issued_at = payload.get("iat")
    if issued_at is None:
        issued_at = int(time.time())
        payload["iat"] = issued_at
    payload["exp"] = math.floor(issued_at + parse_expiry(expires_in))
    logging.info(
        "Signing token for sub=%s role=%s exp=%s",
        payload.get("sub"),
        payload.get("role"),
        payload["exp"],
    )
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def render_report(token: str, claims: Mapping[str, Any], expires_in: str) -> str:
    """Return the human-readable report printed after a token is minted."""

    config_snippet = {
        "mcpServers": {
            "secure-filesystem": {
                "url": GATEWAY_URL,
                "headers": {
                    "Authorization": f"Bearer {token[:CONFIG_PREVIEW_LENGTH]}...",
                },
            }
        }
    }
    lines = [
        "\n=== MCP Authentication Token ===\n",
        "Token:",
        token,
        "\n--- Token Details ---",
        f"Subject: {claims['sub']}",
        f"Role: {claims['role']}",
        f"Issuer: {claims['iss']}",
        f"Audience: {claims['aud']}",
        f"Expires: {expires_in}",
        "\n--- Usage ---",
        "\n# Set as environment variable:",
        f'export MCP_TOKEN="{token}"',
        "\n# Use with curl:",
        f'curl -H "Authorization: Bearer {token[:CURL_PREVIEW_LENGTH]}..." {GATEWAY_URL}',
        "\n# Add to Claude Code config (~/.claude/settings.json):",
        json.dumps(config_snippet, indent=2, ensure_ascii=False),
        "\n",
    ]
    return "\n".join(lines)


def resolve_log_level(value: str | None) -> int:
    """Map a ``LOG_LEVEL`` name to a logging level, defaulting to WARNING."""

    if not value:
        return logging.WARNING
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a JWT for MCP gateway authentication",
        epilog=f"The signing secret is read from ${SECRET_ENV} only.",
    )
    parser.add_argument(
        "--subject",
        default=None,
        help=f"Subject claim (default: $TOKEN_SUBJECT or {DEFAULT_SUBJECT})",
    )
    parser.add_argument(
        "--role",
        default=None,
        help=f"Role claim; 'admin' grants write permission (default: $TOKEN_ROLE or {DEFAULT_ROLE})",
    )
    parser.add_argument(
        "--expiry",
        default=None,
        help=f"Token lifetime such as 24h, 7d or 90m (default: $TOKEN_EXPIRY or {DEFAULT_EXPIRY})",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Optional .env file with variable defaults (default: %(default)s)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    load_env_file(args.env_file)

    logging.basicConfig(
        level=resolve_log_level(os.getenv("LOG_LEVEL")),
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    try:
        settings = load_settings(subject=args.subject, role=args.role, expiry=args.expiry)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.hint:
            print(exc.hint, file=sys.stderr)
        return 1
    logging.debug("Resolved %r", settings)

    claims = build_claims(settings)
    try:
        token = create_jwt(claims, settings.secret, settings.expiry)
    except ExpiryFormatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(render_report(token, claims, settings.expiry))
    return 0


__all__ = [
    "TokenSettings",
    "ExpiryFormatError",
    "load_settings",
    "build_claims",
    "parse_expiry",
    "create_jwt",
    "render_report",
    "resolve_log_level",
    "main",
]


if __name__ == "__main__":
    sys.exit(main())
