from __future__ import annotations

import uvicorn

from ..bootstrap import build_usage_graph
from ..settings import settings
from .app import create_app


def main(host: str | None = None, port: int | None = None, db_path: str | None = None) -> None:
    app = create_app(build_usage_graph(db_path=db_path))
    uvicorn.run(
        app,
        host=host or settings.bind_host,
        port=port or settings.bind_port,
        log_level=(settings.log_level or "info").lower(),
    )


if __name__ == "__main__":
    main()
