from __future__ import annotations

from pathlib import Path

import uvicorn

from app.config import settings

BACKEND_DIR = Path(__file__).resolve().parent


def main() -> None:
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        app_dir=str(BACKEND_DIR),
        reload_dirs=[str(BACKEND_DIR)],
    )


if __name__ == "__main__":
    main()
