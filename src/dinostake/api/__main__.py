# src/dinostake/api/__main__.py
from __future__ import annotations

"""`python -m dinostake.api` / `dinostake-api`: serve the economy API with uvicorn.

Host, port, log level and mode come from EconConfig (config file, then
DINOSTAKE_* env). The configured mode is exported as DINOSTAKE_MODE when the
env does not already set it, so create_app hides docs and the operator burn
route for a prod config file.
"""

import logging
import os

import uvicorn

from dinostake.env import load_dotenv_if_present

log = logging.getLogger("dinostake.api")


def main() -> None:
    load_dotenv_if_present()

    # Config is read only after .env has been applied.
    from dinostake.api.app import create_app
    from dinostake.api.structured_logging import configure_structured_logging
    from dinostake.runtime.config import load_econ_config
    from dinostake.runtime.runtime_logging import log_event

    cfg = load_econ_config()
    os.environ.setdefault("DINOSTAKE_MODE", cfg.mode)
    configure_structured_logging(cfg.log_level)

    app = create_app()
    log_event(log, "api_starting", mode=cfg.mode, host=cfg.api_host, port=int(cfg.api_port), db_path=cfg.db_path)
    uvicorn.run(app, host=cfg.api_host, port=int(cfg.api_port), log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
