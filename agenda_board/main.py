import argparse
import json
import logging
import sys

from agenda_board.agenda.errors import AgendaError


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agenda-board", description="Class agenda extraction and archive")
    parser.add_argument("--config", default="config.yaml",
                        help="Path to config file (default: ./config.yaml)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run scheduled extraction/archival and the API server")

    extract = subparsers.add_parser("extract", help="Extract agendas into the current-day table once")
    extract.add_argument("--day", help="Weekday name to extract instead of today (e.g. Monday)")

    subparsers.add_parser("archive", help="Archive the current-day table under today's date")
    subparsers.add_parser("dates", help="Print archived dates as JSON")
    return parser


def main(argv=None) -> int:
    setup_basic_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "serve"

    from agenda_board.core.app import AgendaApp

    try:
        app = AgendaApp(config_path=args.config, watch=(command == "serve"))
        if command == "serve":
            app.serve()
        elif command == "extract":
            result = app.run_extraction(args.day)
            print(json.dumps(result._asdict()))
        elif command == "archive":
            result = app.run_archival()
            print(json.dumps(result._asdict()))
        elif command == "dates":
            print(json.dumps(app.list_archived_dates()))
    except AgendaError as e:
        logging.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
