#!/usr/bin/env python3
"""
Command-line interface for the grocery list
"""
import sys
import argparse
import platform
from datetime import date
from pathlib import Path
from typing import List, Optional

from .errors import GroceryListError, InvalidArgument
from .logging_setup import setup_logging
from .manager import GroceryListManager, render_grouped
from .storage import STORAGE_FORMATS, create_storage

FILE_COMMANDS = ('add', 'list', 'remove', 'web')


def open_manager(source: Path, fmt: str) -> GroceryListManager:
    """Load the grocery list stored in ``source``."""
    return GroceryListManager(create_storage(fmt, source))


def add_command(manager: GroceryListManager, name: str, quantity: str, category: str) -> int:
    """Add an item to the list."""
    try:
        amount = int(quantity)
    except ValueError as e:
        raise InvalidArgument(f"Quantity must be a number, got '{quantity}'") from e
    if amount <= 0:
        raise InvalidArgument("Quantity must be positive")

    item = manager.add_item(name, amount, category)
    print(f"✅ {item}")
    return 0


def list_command(manager: GroceryListManager) -> int:
    """Print the list grouped by category."""
    for line in render_grouped(manager.list_items()):
        print(line)
    return 0


def remove_command(manager: GroceryListManager, name: str) -> int:
    """Remove an item from the list, whatever its category."""
    removed = manager.remove_item(name)
    if removed:
        print(f"✅ Removed {name}")
    else:
        print(f"⚠️  {name} is not on the list")
    return 0


def info_command() -> int:
    """Print the date and details about the running system."""
    print(f"Today's date: {date.today().isoformat()}")
    print(f"Operating System: {platform.system()}")
    print(f"Python version: {platform.python_version()}")
    print()
    return 0


def web_command(manager: GroceryListManager, port: int = 8080) -> int:
    """Start the web server for the grocery list."""
    try:
        import uvicorn
        from . import web_server
    except ImportError as e:
        print(f"❌ Missing required package: {e}")
        print("\nInstall web server dependencies:")
        print("  pip install fastapi uvicorn python-multipart")
        return 1

    web_server.configure(manager)

    print(f"🌐 Starting grocery list server at http://localhost:{port}")
    print(f"📂 Using list: {manager.storage.path}")
    print(f"Press Ctrl+C to stop\n")

    try:
        uvicorn.run(web_server.app, host="0.0.0.0", port=port, log_level="info")
    except KeyboardInterrupt:
        print("\n\n👋 Server stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser_cli = argparse.ArgumentParser(
        prog="grocery-list",
        description="Grocery list - keep a shopping list in a JSON or CSV file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add two litres of milk to the dairy category
  grocery-list -s groceries.json -c dairy add Milk 2

  # Show the list grouped by category
  grocery-list -s groceries.json list

  # Use a CSV file instead of JSON
  grocery-list -s groceries.csv -f csv list

  # Remove an item from every category
  grocery-list -s groceries.json remove milk

  # Serve the list on http://localhost:8080
  grocery-list -s groceries.json web
        """
    )

    parser_cli.add_argument('--source', '-s', type=Path, help='File holding the grocery list')
    parser_cli.add_argument('--format', '-f', type=str.lower, default='json',
                            choices=sorted(STORAGE_FORMATS), help='File format (default: json)')
    parser_cli.add_argument('--category', '-c', type=str, default='default',
                            help='Category for added items (default: default)')
    parser_cli.add_argument('--verbose', '-v', action='store_true', help='Show log messages')

    subparsers = parser_cli.add_subparsers(dest='command', help='Command to run')

    # Add command
    add_parser = subparsers.add_parser('add', help='Add an item')
    add_parser.add_argument('name', help='Item name')
    add_parser.add_argument('quantity', help='Quantity to add')

    # List command
    subparsers.add_parser('list', help='List items grouped by category')

    # Remove command
    remove_parser = subparsers.add_parser('remove', help='Remove an item from every category')
    remove_parser.add_argument('name', help='Item name (case-insensitive)')

    # Info command
    subparsers.add_parser('info', help='Show date and system information')

    # Web command
    web_parser = subparsers.add_parser('web', help='Start the web server')
    web_parser.add_argument('--port', '-p', type=int, default=8080, help='Port number (default: 8080)')

    return parser_cli


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser_cli = build_parser()
    args = parser_cli.parse_args(argv)

    setup_logging('INFO' if args.verbose else None)

    if args.command is None:
        parser_cli.print_help()
        return 1
    if args.command == 'info':
        return info_command()
    if args.command in FILE_COMMANDS and args.source is None:
        parser_cli.error(f"the following arguments are required for '{args.command}': --source/-s")

    try:
        manager = open_manager(args.source, args.format)

        if args.command == 'add':
            return add_command(manager, args.name, args.quantity, args.category)
        elif args.command == 'list':
            return list_command(manager)
        elif args.command == 'remove':
            return remove_command(manager, args.name)
        else:
            return web_command(manager, args.port)
    except GroceryListError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
