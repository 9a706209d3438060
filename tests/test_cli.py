"""Tests for the command line entry point."""

import pytest

from update_registry import __main__ as cli
from update_registry.auth.token_client import Scope, TokenClient
from update_registry.config import Settings


def test_issue_token_prints_valid_token(monkeypatch, capsys, test_settings: Settings) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: test_settings)

    code = cli.main(["issue-token", "--key-id", "key_ci_acme", "--app", "acme"])

    assert code == 0
    token = capsys.readouterr().out.strip()
    principal = TokenClient(test_settings.auth_jwt_secret).validate_token(token)
    assert principal.key_id == "key_ci_acme"
    assert principal.scope == Scope.CI
    assert principal.app_slug == "acme"


def test_issue_token_without_secret(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "get_settings", lambda: Settings(auth_jwt_secret=""))

    code = cli.main(["issue-token", "--key-id", "key_admin", "--scope", "admin"])

    assert code == 1
    assert "AUTH_JWT_SECRET" in capsys.readouterr().err


def test_unknown_scope_rejected() -> None:
    with pytest.raises(SystemExit):
        cli.main(["issue-token", "--key-id", "k", "--scope", "root"])


def test_serve_is_default(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli, "serve", lambda: calls.append("serve"))

    assert cli.main([]) == 0
    assert calls == ["serve"]
