"""Command-line entry point for pushdesk."""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from pushdesk.config.environment import EnvironmentConfig
from pushdesk.config.exceptions import ConfigurationError
from pushdesk.config.loader import load_config
from pushdesk.config.models import AppConfig
from pushdesk.delivery.exceptions import ProviderConfigurationError
from pushdesk.delivery.firebase import FirebaseProvider
from pushdesk.delivery.service import NotificationService
from pushdesk.logging import get_logger
from pushdesk.logging.config import configure_logging
from pushdesk.persistence.database import close_database, get_session, init_database
from pushdesk.persistence.repositories import AuditRepository
from pushdesk.utils.timestamps import format_timestamp

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pushdesk",
        description="pushdesk - send admin push notifications and review delivery history",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send one push notification")
    send.add_argument("--title", required=True, help="Notification title (truncated to 65 characters)")
    send.add_argument("--body", required=True, help="Notification body (truncated to 240 characters)")
    send.add_argument(
        "--target",
        default="all",
        help="Audience: 'all', 'segment:<name>' or 'explicit:<id>,<id>' (default: all)",
    )
    send.add_argument("--sent-by", default=None, help="Admin identity recorded on the audit record")
    send.add_argument("--image-url", default=None, help="Optional https:// image shown in the notification")
    send.add_argument("--action-url", default=None, help="Optional URL delivered as click_action")
    send.add_argument(
        "--dry-run",
        action="store_true",
        help="Ask the provider to validate messages without delivering them",
    )

    history = subparsers.add_parser("history", help="Show the most recent notifications")
    history.add_argument("--limit", type=int, default=5, help="Number of records to show (default: 5)")

    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def run_send(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    provider = FirebaseProvider.from_environment(env_config, dry_run=args.dry_run)
    service = NotificationService(provider, app_config)

    result = service.send_notification(
        title=args.title,
        body=args.body,
        target=args.target,
        sent_by=args.sent_by,
        image_url=args.image_url,
        action_url=args.action_url,
    )
    _print_json(result.to_dict())
    return 0 if result.success else 1


def run_history(args: argparse.Namespace) -> int:
    if args.limit < 1:
        print("--limit must be at least 1", file=sys.stderr)
        return 1

    with get_session() as session:
        records = AuditRepository(session).list_recent(limit=args.limit)

    _print_json(
        [
            {
                "id": record.id,
                "title": record.title,
                "body": record.body,
                "target": record.target_summary,
                "delivered": record.delivered_count,
                "failed": record.failed_count,
                "targeted": record.targeted_count,
                "partial": record.partial,
                "sent_by": record.sent_by,
                "sent_at": format_timestamp(record.created_at),
            }
            for record in records
        ]
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for pushdesk.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
        logger.info(
            "pushdesk starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)
        try:
            if args.command == "send":
                exit_code = run_send(args, app_config, env_config)
            else:
                exit_code = run_history(args)
        finally:
            close_database()

        logger.info(
            "pushdesk finished",
            extra={
                "event": "service.stopping",
                "exit_code": exit_code,
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return exit_code

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except ProviderConfigurationError as e:
        print(f"Provider Error: {e}", file=sys.stderr)
        logger.error(
            f"Provider configuration error: {e}",
            extra={"event": "provider.config.error", "error_type": "ProviderConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
