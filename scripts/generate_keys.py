"""Generate runtime key values for agent-crm."""

from __future__ import annotations

import argparse
import secrets
from pathlib import Path

from agent_crm.core.config import DEFAULT_DB_KEY_ENV, DEFAULT_ENCRYPTION_KEY_ENV
from agent_crm.core.crypto import CryptoService

LINE_FORMATS = {
    "shell": "{name}='{value}'",
    "shell-export": "export {name}='{value}'",
    "powershell": "$env:{name}='{value}'",
}


def render_lines(db_key: str, encryption_key: str, env_format: str) -> list[str]:
    template = LINE_FORMATS[env_format]
    return [
        template.format(name=DEFAULT_DB_KEY_ENV, value=db_key),
        template.format(name=DEFAULT_ENCRYPTION_KEY_ENV, value=encryption_key),
    ]


def main() -> None:
    """Generate keys and optionally write/print env lines."""
    parser = argparse.ArgumentParser(description="Generate agent-crm runtime keys.")
    parser.add_argument("--write-env", default=None, help="Path to write generated keys.")
    parser.add_argument("--format", choices=sorted(LINE_FORMATS), default="shell")
    parser.add_argument("--stdout", action="store_true", help="Also print generated lines.")
    parser.add_argument("--force", action="store_true", help="Overwrite existing env file.")
    args = parser.parse_args()

    lines = render_lines(secrets.token_urlsafe(48), CryptoService.generate_base64_key(), args.format)

    if args.write_env:
        target_path = Path(args.write_env)
        if target_path.exists() and not args.force:
            print(f"[INFO] key file already exists: {target_path}")
            return
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        print(f"[INFO] key file written: {target_path}")

    if args.stdout:
        print("\n".join(lines))


if __name__ == "__main__":
    main()
