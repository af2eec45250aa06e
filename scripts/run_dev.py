"""Development entry point."""

import os

from app import create_app


def _resolve_port() -> int:
    value = os.getenv("SCICALC_PORT") or os.getenv("PORT") or "5001"
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(
            f"Invalid port '{value}'. Set SCICALC_PORT to a number."
        ) from exc


def _resolve_host() -> str:
    return os.getenv("SCICALC_HOST") or "127.0.0.1"


if __name__ == "__main__":
    app = create_app()
    app.run(host=_resolve_host(), port=_resolve_port(), debug=False)
