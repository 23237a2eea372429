"""Command-line entry point: dump messages from a RabbitMQ queue to files."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from common.config import Settings, get_settings
from common.logging_config import setup_service_logging
from dump_queue.driver import QueueDumper
from dump_queue.exceptions import ConfigurationError, DumpError, PersistenceError
from dump_queue.schemas import DumpConfig

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def build_parser(app_settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    """Create the argument parser; defaults come from the environment settings."""
    if app_settings is None:
        app_settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="rabbitmq-dump-queue",
        description=(
            "Dump messages from a RabbitMQ queue to files without changing the "
            "queue unless --ack is given."
        ),
    )
    parser.add_argument("--uri", default=app_settings.rabbitmq_url, help="AMQP URI")
    parser.add_argument(
        "--insecure-tls",
        action="store_true",
        default=app_settings.rabbitmq_insecure_tls,
        help="Insecure TLS mode: don't check certificates",
    )
    parser.add_argument("--queue", default="", help="AMQP queue name")
    parser.add_argument(
        "--ack", action="store_true", help="Acknowledge messages"
    )
    parser.add_argument(
        "--max-messages",
        type=int,
        default=app_settings.dump_max_messages,
        help="Maximum number of messages to dump, 0 for no limit (default: %(default)s)",
    )
    parser.add_argument(
        "--output-dir",
        default=app_settings.dump_output_dir,
        help="Directory in which to save the dumped messages (default: %(default)s)",
    )
    parser.add_argument(
        "--single-file",
        action="store_true",
        help="Write all messages into one JSON array file",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Dump the message, its properties and headers",
    )
    parser.add_argument("--verbose", action="store_true", help="Print progress")
    parser.set_defaults(fetch_timeout=app_settings.dump_fetch_timeout)
    return parser


def validation_messages(error: ValidationError, with_location: bool = False) -> str:
    """Join the messages of a pydantic ValidationError into one line."""
    messages = []
    for item in error.errors():
        message = item["msg"].removeprefix("Value error, ")
        if with_location and item["loc"]:
            message = f"{str(item['loc'][0]).upper()}: {message}"
        messages.append(message)
    return "; ".join(messages)


def config_from_args(args: argparse.Namespace) -> DumpConfig:
    """
    Turn parsed arguments into a validated run configuration.

    Raises:
        ConfigurationError: If any value is invalid (e.g. missing queue name)
    """
    try:
        return DumpConfig(
            uri=args.uri,
            insecure_tls=args.insecure_tls,
            queue=args.queue,
            ack=args.ack,
            max_messages=args.max_messages,
            output_dir=Path(args.output_dir),
            single_file=args.single_file,
            full=args.full,
            verbose=args.verbose,
            fetch_timeout=args.fetch_timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(validation_messages(e)) from e


def ensure_output_directory(output_dir: Path) -> None:
    """Create the output directory if needed."""
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"Output directory: {e}") from e


async def dump(config: DumpConfig) -> int:
    """Run one dump with the given configuration; returns the message count."""
    ensure_output_directory(config.output_dir)
    return await QueueDumper(config).run()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, run the dump and map the outcome to an exit status.

    Returns:
        0 on success, 2 on configuration errors, 1 on runtime errors
    """
    try:
        app_settings = get_settings()
    except ValidationError as e:
        print(
            f"Error: invalid environment: {validation_messages(e, with_location=True)}",
            file=sys.stderr,
        )
        return EXIT_CONFIGURATION_ERROR

    args = build_parser(app_settings).parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    logger = setup_service_logging("dump_queue", verbose=config.verbose)

    try:
        asyncio.run(dump(config))
    except DumpError as e:
        logger.debug("Dump failed", exc_info=True)
        print(e, file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
