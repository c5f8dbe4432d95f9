# rplus/cli.py
import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from rplus.config_loader import DEFAULT_CONFIG_PATH, ConfigError
from rplus.main import create_app
from rplus.settings import load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _setup_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rplus", description="Gate pull requests on r+ approvals."
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH, help="Path to configuration file"
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 2

    _setup_logging(settings.log_level)
    app = create_app(settings)
    hooks = settings.webhook_server
    host, port = hooks.host_port()
    logging.getLogger(__name__).info(
        "Serving %s on %s:%d (pr: %s, comment: %s, tls: %s)",
        settings.repo,
        host,
        port,
        hooks.pr_path,
        hooks.comment_path,
        hooks.tls,
    )
    uvicorn.run(
        app,
        host=host,
        port=port,
        ssl_certfile=hooks.certificate if hooks.tls else None,
        ssl_keyfile=hooks.certificate_key if hooks.tls else None,
        log_level=settings.log_level.lower(),
    )
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
