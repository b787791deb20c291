"""Utilities for loading local (gitignored) credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_SECRETS_FILENAME = "local_secrets.json"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load secrets from a JSON file; return {} when unavailable or unreadable."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"[warn] ignoring unreadable secrets file {secrets_path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def load_github_token(secrets: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Return the personal access token, preferring the secrets file over the env.

    Accepts either ``{"github_token": "..."}`` or the list form
    ``{"github_tokens": ["...", ...]}`` in which case the first entry wins.
    """
    secrets = load_local_secrets() if secrets is None else secrets
    token = secrets.get("github_token")
    if not token:
        tokens = [t for t in (secrets.get("github_tokens") or []) if t]
        token = tokens[0] if tokens else None
    token = token or os.getenv(TOKEN_ENV_VAR)
    return token.strip() if isinstance(token, str) and token.strip() else None


__all__ = ["load_local_secrets", "load_github_token", "DEFAULT_SECRETS_FILENAME", "TOKEN_ENV_VAR"]
