"""Session maintenance CLI.

Garbage collection is not run by stores or the manager; schedule this
command (cron, systemd timer) to expire old session payloads:

    lumberjack-session gc --config-dir config
"""
from __future__ import annotations
import argparse
import sys
from typing import Iterable, Optional

from lumberjack_lib.config import Config, SessionSettings
from lumberjack_lib.encryption import create_encrypter
from lumberjack_lib.logging_config import configure_logging
from lumberjack_lib.services import ServiceContainer
from lumberjack_lib.session import SessionManager


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lumberjack-session", description="Session storage maintenance")
    p.add_argument("--config-dir", default="config", help="Directory holding the YAML config files")
    sub = p.add_subparsers(dest="command", required=True)
    gc = sub.add_parser("gc", help="Remove expired session payloads")
    gc.add_argument("--driver", default=None, help="Driver to collect (default: session.driver)")
    gc.add_argument("--lifetime", type=int, default=None, help="Lifetime in minutes (default: session.lifetime)")
    return p


def build_container(config: Config) -> ServiceContainer:
    container = ServiceContainer()
    container.register_singleton("config", config)
    container.register_factory("encrypter", lambda: create_encrypter(config))
    return container


def run_gc(manager: SessionManager, settings: SessionSettings, driver: Optional[str] = None, lifetime: Optional[int] = None) -> int:
    minutes = lifetime if lifetime is not None else settings.lifetime
    handler = manager.driver(driver).get_handler()
    return handler.gc(minutes * 60)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = get_parser().parse_args(list(argv) if argv is not None else None)
    config = Config.from_directory(args.config_dir)
    logger = configure_logging(config)
    settings = SessionSettings.from_config(config)
    manager = SessionManager(build_container(config))

    if args.command == "gc":
        try:
            removed = run_gc(manager, settings, args.driver, args.lifetime)
        except (ValueError, OSError) as e:
            logger.error("Session gc failed: %s", e)
            return 1
        print(f"Removed {removed} expired session(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
