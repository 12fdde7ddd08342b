import argparse
import logging
import sys

from portalwatch.core.app import LOG_FORMAT, PortalWatchApp
from portalwatch.core.errors import PortalWatchError


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)
        logging.debug("Basic logging initialized")


def main(argv=None) -> int:
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Parent portal sync and problem-assignment notifier')
    parser.add_argument('--config',
                        help='Path to optional YAML settings file (default: ./config.yaml)')
    parser.add_argument('--once', action='store_true',
                        help='Run one sync and notification pass now, then exit')
    args = parser.parse_args(argv)

    try:
        app = PortalWatchApp(config_path=args.config)
        if args.once:
            app.run_once()
        else:
            app.run()
    except PortalWatchError as e:
        logging.exception(f"Fatal: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
