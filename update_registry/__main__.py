"""Entry point for running the update server and minting API tokens."""

import argparse
import sys
from typing import Optional

import uvicorn

from update_registry.app import configure_logging
from update_registry.auth.token_client import Scope, TokenClient
from update_registry.config import get_settings


def serve() -> None:
    """Run the update server."""
    settings = get_settings()
    configure_logging(settings)

    uvicorn.run(
        "update_registry.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else settings.log_level,
    )


def issue_token(args: argparse.Namespace) -> int:
    """Print a signed admin or CI token for the configured secret."""
    client = TokenClient(jwt_secret=get_settings().auth_jwt_secret)
    if not client.enabled:
        print("Error: AUTH_JWT_SECRET is not configured", file=sys.stderr)
        return 1

    print(
        client.issue_token(
            key_id=args.key_id,
            scope=Scope(args.scope),
            app_slug=args.app,
            ttl_seconds=args.ttl,
        )
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="update-registry",
        description="Update server for Tauri desktop applications",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the HTTP server (default)")

    token = commands.add_parser("issue-token", help="Print a bearer token for the admin or CI API")
    token.add_argument("--key-id", required=True, help="API key id, used as the rate-limit identity")
    token.add_argument("--scope", choices=[s.value for s in Scope], default=Scope.CI.value)
    token.add_argument("--app", default=None, help="Bind a CI token to one app slug")
    token.add_argument("--ttl", type=int, default=30 * 24 * 3600, help="Lifetime in seconds (default: 30 days)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "issue-token":
        return issue_token(args)

    serve()
    return 0


if __name__ == "__main__":
    sys.exit(main())
