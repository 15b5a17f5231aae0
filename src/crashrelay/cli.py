"""
CrashRelay CLI - start the webhook relay server.

Flags override env vars (CRASHRELAY_*), which override config.yaml.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional

import structlog
import uvicorn

from .config import Settings, load_settings
from .core.exceptions import ConfigurationError
from .main import configure_logging, create_app

# Settings field -> CLI flag, in the order flags are reported as missing
FLAG_NAMES = {
    "crashlytics_auth_token": "crashlytics-auth-token",
    "humio_ingest_token": "humio-ingest-token",
    "humio_url": "humio-url",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crashrelay",
        description="Relay Crashlytics issue webhooks to Humio",
    )
    parser.add_argument("--timeout", type=float, help="Server and Humio request timeout in seconds (default: 10)")
    parser.add_argument("--crashlytics-auth-token", help="Crashlytics webhook authentication token (required)")
    parser.add_argument("--humio-ingest-token", help="Humio ingest token (required)")
    parser.add_argument("--humio-url", help="Humio HTTP API URL, e.g. https://cloud.humio.com (required)")
    parser.add_argument("--port", type=int, help="HTTP server port for webhooks (default: 8080)")
    parser.add_argument("--host", help="HTTP server host (default: 0.0.0.0)")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    parser.add_argument("--config", help="Path to a YAML config file")
    return parser


def settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed flags onto Settings fields, skipping unset flags."""
    overrides = {
        "timeout_seconds": args.timeout,
        "crashlytics_auth_token": args.crashlytics_auth_token,
        "humio_ingest_token": args.humio_ingest_token,
        "humio_url": args.humio_url,
        "port": args.port,
        "host": args.host,
        "log_level": args.log_level,
    }
    return {key: value for key, value in overrides.items() if value is not None}


def describe_configuration_error(error: ConfigurationError) -> str:
    """Render a configuration error in terms of CLI flags."""
    missing: List[str] = error.details.get("missing", [])
    invalid: Dict[str, str] = error.details.get("invalid", {})

    if missing:
        flags = [flag for field, flag in FLAG_NAMES.items() if field in missing]
        flags += [field for field in missing if field not in FLAG_NAMES]
        return f"flag(s) {' '.join(flags)} required but missing"

    if "humio_url" in invalid:
        return (
            "flag humio-url not valid: should be in the form "
            f"'http://cloud.humio.com': {invalid['humio_url']}"
        )

    problems = ", ".join(f"{field}: {msg}" for field, msg in invalid.items())
    return f"invalid configuration: {problems}"


def serve(settings: Settings) -> None:
    """Run the relay until interrupted."""
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=max(1, int(settings.timeout_seconds)),
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config, **settings_overrides(args))
    except ConfigurationError as e:
        print(describe_configuration_error(e))
        return 2

    configure_logging(settings.log_level)
    logger = structlog.get_logger(__name__)
    logger.info("Listening", host=settings.host, port=settings.port)

    try:
        serve(settings)
    except Exception as e:
        logger.error("http server failed", error=str(e), exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
