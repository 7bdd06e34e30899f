"""
Module entrypoint: `python -m owned`

Starts the Owned API server.
"""

from __future__ import annotations


def main() -> None:
    import uvicorn

    from .api import app
    from .config import get_api_bind

    host, port = get_api_bind()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
