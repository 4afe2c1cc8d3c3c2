"""CLI for the campaign ledger."""

import argparse
import sys
from typing import Any, Dict, List, Optional

from crowdledger.chain.client import StacksClient
from crowdledger.config import Config
from crowdledger.db.healthcheck import check_tables_exist
from crowdledger.ledger.core import Ledger
from crowdledger.ledger.response import Response
from crowdledger.log import get_logger, setup_logging
from crowdledger.messaging.publisher import EventPublisher
from crowdledger.messaging.rabbitmq import RabbitMQConnection
from crowdledger.messaging.routing import ALL_EVENT_QUEUES, DLX_QUEUE_NAME
from crowdledger.utils.formatting import format_stx, stx_to_micro

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_REJECTED = 2


def print_response(response: Response) -> int:
    """Print a call response as JSON and return the matching exit code."""
    print(response.model_dump_json(indent=2, exclude_none=True))
    return EXIT_OK if response.ok else EXIT_REJECTED


def print_summary(ledger: Ledger) -> int:
    """Print the aggregate counters in a human readable form."""
    summary = ledger.call("get-campaigns-summary").expect_ok()
    height = ledger.clock.current_height()

    print(f"Block Height: {height}")
    print(f"Total Campaigns: {summary.total_camps}")
    print(f"Active Campaigns: {summary.active_camps}")
    print(f"Total Raised: {format_stx(summary.total_stx)}")
    print(f"Total Contributors: {summary.total_contributors}")
    print(f"Escrow Balance: {format_stx(ledger.get_escrow_balance())}")
    return EXIT_OK


def broker_setup(config: Config) -> None:
    """Set up RabbitMQ exchanges, queues, and bindings."""
    print(f"Setting up RabbitMQ broker at {config.rabbitmq_host}:{config.rabbitmq_port}")

    connection = RabbitMQConnection(**config.get_rabbitmq_connection_params())
    try:
        connection.connect()
        connection.setup_exchange_and_queues(config.rabbitmq_exchange)
        print("Broker setup complete!")
        print(f"  Exchange: {config.rabbitmq_exchange}")
        print(f"  Queues: {', '.join(ALL_EVENT_QUEUES)}")
        print(f"  DLQ: {DLX_QUEUE_NAME}")
    finally:
        connection.close()


def broker_status(config: Config) -> None:
    """Show RabbitMQ queue status."""
    print(f"RabbitMQ: {config.rabbitmq_host}:{config.rabbitmq_port}")

    connection = RabbitMQConnection(**config.get_rabbitmq_connection_params())
    try:
        connection.connect()
        status = connection.get_queue_status()

        print("\nQueue Status:")
        print("-" * 50)
        for queue_name in ALL_EVENT_QUEUES + [DLX_QUEUE_NAME]:
            queue_status = status.get(queue_name, {})
            if "error" in queue_status:
                print(f"  {queue_name}: ERROR - {queue_status['error']}")
            else:
                print(f"  {queue_name}:")
                print(f"    Messages: {queue_status.get('message_count', 0)}")
                print(f"    Consumers: {queue_status.get('consumer_count', 0)}")
    finally:
        connection.close()


def sync_height(config: Config, ledger: Ledger) -> int:
    """Move the ledger's chain tip to the Stacks node tip."""
    with StacksClient(config) as client:
        tip = client.get_tip_height()
    height = ledger.clock.set_height(tip)
    print(f"Node tip: {tip}")
    print(f"Ledger height: {height}")
    return EXIT_OK


def _amount(args: argparse.Namespace, micro_attr: str, stx_attr: str) -> int:
    stx = getattr(args, stx_attr, None)
    if stx is not None:
        return stx_to_micro(stx)
    return getattr(args, micro_attr)


def run_command(args: argparse.Namespace, config: Config, ledger: Ledger) -> int:
    """Dispatch a parsed ledger command.

    Returns:
        Process exit code
    """
    command = args.command

    if command == "create":
        deadline = args.deadline
        if deadline is None:
            deadline = ledger.clock.current_height() + args.duration
        call_args: Dict[str, Any] = {
            "title": args.title,
            "description": args.description,
            "goal": _amount(args, "goal", "goal_stx"),
            "deadline": deadline,
        }
        return print_response(ledger.call("create-campaign", call_args, sender=args.sender))

    if command == "contribute":
        call_args = {"campaign_id": args.campaign, "amount": _amount(args, "amount", "amount_stx")}
        return print_response(ledger.call("contribute", call_args, sender=args.sender))

    owner_calls = {
        "close": "close-campaign",
        "withdraw": "withdraw-funds",
        "finalize": "finalize-failure",
        "refund": "get-refund",
    }
    if command in owner_calls:
        return print_response(ledger.call(owner_calls[command], [args.campaign], sender=args.sender))

    if command == "show":
        return print_response(ledger.call("get-campaign", [args.campaign]))
    if command == "status":
        return print_response(ledger.call("get-campaign-status", [args.campaign]))
    if command == "contribution":
        return print_response(ledger.call("get-contribution", [args.campaign, args.address]))
    if command == "events":
        return print_response(ledger.call("get-campaign-events", [args.campaign]))
    if command == "expired":
        return print_response(ledger.call("get-expired-campaigns"))
    if command == "list":
        return print_response(Response.success(ledger.list_campaigns()))
    if command == "summary":
        return print_summary(ledger)
    if command == "mine":
        height = ledger.clock.advance(args.blocks)
        print(f"Block height: {height}")
        return EXIT_OK
    if command == "sync-height":
        return sync_height(config, ledger)

    raise ValueError(f"Unhandled command: {command}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="Crowdfunding campaign ledger",
        prog="crowdledger",
    )
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create the ledger schema")
    init_parser.add_argument("--height", type=int, default=0, help="Initial block height")

    # Transactions
    create_cmd = subparsers.add_parser("create", help="Create a campaign")
    create_cmd.add_argument("--sender", "-s", required=True, help="Caller principal")
    create_cmd.add_argument("--title", required=True, help="Campaign title (ASCII)")
    create_cmd.add_argument("--description", default="", help="Campaign description (ASCII)")
    goal_group = create_cmd.add_mutually_exclusive_group(required=True)
    goal_group.add_argument("--goal", type=int, help="Goal in micro-STX")
    goal_group.add_argument("--goal-stx", type=str, help="Goal in STX")
    deadline_group = create_cmd.add_mutually_exclusive_group(required=True)
    deadline_group.add_argument("--deadline", type=int, help="Deadline block height")
    deadline_group.add_argument("--duration", type=int, help="Blocks from the current height")

    contribute_parser = subparsers.add_parser("contribute", help="Contribute to a campaign")
    contribute_parser.add_argument("--sender", "-s", required=True, help="Caller principal")
    contribute_parser.add_argument("--campaign", "-c", type=int, required=True, help="Campaign id")
    amount_group = contribute_parser.add_mutually_exclusive_group(required=True)
    amount_group.add_argument("--amount", type=int, help="Amount in micro-STX")
    amount_group.add_argument("--amount-stx", type=str, help="Amount in STX")

    for name, help_text in (
        ("close", "Close a campaign (owner)"),
        ("withdraw", "Withdraw funds of a successful campaign (owner)"),
        ("finalize", "Finalize a failed campaign for refunds (owner)"),
        ("refund", "Claim a refund from a finalized campaign"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--sender", "-s", required=True, help="Caller principal")
        sub.add_argument("--campaign", "-c", type=int, required=True, help="Campaign id")

    # Queries
    for name, help_text in (
        ("show", "Show a campaign"),
        ("status", "Show campaign status and blocks remaining"),
        ("events", "Show events recorded for a campaign"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("campaign", type=int, help="Campaign id")

    contribution_parser = subparsers.add_parser("contribution", help="Show a contribution")
    contribution_parser.add_argument("campaign", type=int, help="Campaign id")
    contribution_parser.add_argument("address", help="Contributor principal")

    subparsers.add_parser("summary", help="Show aggregate counters")
    subparsers.add_parser("list", help="List all campaigns")
    subparsers.add_parser("expired", help="List expired campaigns that missed their goal")

    # Chain
    mine_parser = subparsers.add_parser("mine", help="Advance the block height")
    mine_parser.add_argument("--blocks", "-n", type=int, default=1, help="Number of blocks")
    subparsers.add_parser("sync-height", help="Sync block height from the Stacks node")

    # Broker
    broker_parser = subparsers.add_parser("broker", help="Broker management commands")
    broker_subparsers = broker_parser.add_subparsers(dest="subcommand", help="Broker subcommands")
    broker_subparsers.add_parser("setup", help="Set up exchanges and queues")
    broker_subparsers.add_parser("status", help="Show queue status")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FATAL)

    try:
        config = Config.from_env()
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(EXIT_FATAL)

    setup_logging(config, args.log_level)

    if args.command == "broker":
        if not args.subcommand:
            print("Usage: crowdledger broker {setup|status}")
            sys.exit(EXIT_FATAL)
        try:
            if args.subcommand == "setup":
                broker_setup(config)
            else:
                broker_status(config)
        except Exception as e:
            logger.error(f"Broker command failed: {e}", exc_info=True)
            sys.exit(EXIT_FATAL)
        sys.exit(EXIT_OK)

    publisher = EventPublisher(config) if config.publish_events else None
    ledger = Ledger(config=config, publisher=publisher)

    try:
        if args.command == "init":
            ledger.initialize(block_height=args.height)
            print(f"Ledger initialized at {config.db_url}")
            sys.exit(EXIT_OK)

        check_tables_exist(ledger.engine)
        code = run_command(args, config, ledger)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(EXIT_OK)
    except (RuntimeError, ValueError) as e:
        logger.error(str(e))
        sys.exit(EXIT_FATAL)
    finally:
        if publisher is not None:
            publisher.close()

    sys.exit(code)


if __name__ == "__main__":
    main()
