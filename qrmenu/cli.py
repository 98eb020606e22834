"""Command-line diner menu - HTTP client for the server API."""

import argparse
import logging
import shutil
import subprocess
import sys

import httpx

from qrmenu.config import get_config, setup_logging
from qrmenu.identifiers import restaurant_id_from_url
from qrmenu.models import MenuDocument, MenuSource
from qrmenu.rendering import ALL_CATEGORIES, render_menu_text
from qrmenu.services.cart import (
    ClipboardUnavailableError,
    ItemUnavailableError,
    offer_summary,
)
from qrmenu.services.diner_session import DinerSession
from qrmenu.services.fallback_menus import builtin_menu

logger = logging.getLogger(__name__)

# Clipboard programs tried in order
CLIPBOARD_COMMANDS = [
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["clip"],
]

HELP_TEXT = """Commands:
  list                 show the menu
  cat <name|all>       switch category
  search <text>        filter by name or description (empty clears)
  add <n> [size]       select item number n (again to add one more)
  + <n> / - <n>        change quantity of selection line n
  rm <n>               remove selection line n
  cart                 show your selection
  clear                empty your selection
  send                 copy the order summary for the waiter
  quit                 exit"""


def copy_to_clipboard(text: str) -> None:
    """Copy text with the first available system clipboard program.

    Raises:
        ClipboardUnavailableError: If no clipboard program works
    """
    for command in CLIPBOARD_COMMANDS:
        if shutil.which(command[0]) is None:
            continue
        try:
            subprocess.run(command, input=text.encode("utf-8"), check=True, timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"{command[0]} failed: {e}")
            continue
        return
    msg = "no clipboard program available"
    raise ClipboardUnavailableError(msg)


def restaurant_id_from_argument(value: str | None, default: str) -> str:
    """Accept either a bare restaurant id or a full menu URL."""
    if not value:
        return default
    if "://" in value or value.startswith(("?", "#", "/")):
        return restaurant_id_from_url(value, default)
    return value.strip() or default


class MenuCLI:
    """Command-line interface for browsing a menu and building an order."""

    def __init__(self, restaurant_id: str, table: str | None = None) -> None:
        """Initialize the CLI.

        Args:
            restaurant_id: Restaurant to open
            table: Optional table identifier printed on the order summary
        """
        self.config = get_config()
        setup_logging(self.config)

        self.restaurant_id = restaurant_id
        self.table = table
        self.session: DinerSession | None = None
        logger.info(f"Menu CLI initialized for {restaurant_id} against {self.config.server_url}")

    def load(self) -> DinerSession:
        """Fetch the menu from the server, or use the built-in one offline."""
        try:
            with httpx.Client(timeout=30.0) as client:
                response = client.get(f"{self.config.server_url}/api/menu/{self.restaurant_id}")
                response.raise_for_status()
                menu = MenuDocument.model_validate(response.json())
        except httpx.ConnectError:
            logger.exception("Cannot connect to server")
            print(f"\n⚠ Cannot connect to server at {self.config.server_url}")
            print("Showing the built-in menu. Start the server with:")
            print("  qrmenu-server")
            menu = builtin_menu(self.restaurant_id, self.config.default_restaurant_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error loading menu: {e}", exc_info=True)
            print(f"\n⚠ Could not load the menu ({e}); showing the built-in menu.")
            menu = builtin_menu(self.restaurant_id, self.config.default_restaurant_id)

        self.session = DinerSession(
            self.restaurant_id, menu, table=self.table, locale=self.config.price_locale
        )
        return self.session

    def run(self) -> None:
        """Run the CLI application."""
        session = self.load()
        view = session.view()

        print("\n" + "=" * 60)
        print(view["title"])
        if session.state.menu.source is not MenuSource.STORE:
            print(f"(menu source: {session.state.menu.source.value})")
        print("=" * 60 + "\n")
        print(HELP_TEXT)
        self._show_menu()

        while True:
            try:
                user_input = input("\nmenu> ").strip()

                if not user_input:
                    continue

                if user_input.lower() in ["quit", "exit", "q"]:
                    print("\nEnjoy your meal. Goodbye!")
                    break

                self.handle(user_input)

            except (KeyboardInterrupt, EOFError):
                print("\n\nGoodbye!")
                break

    def handle(self, user_input: str) -> None:
        """Apply one command line to the session."""
        session = self.session
        command, _, argument = user_input.partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command == "list":
            self._show_menu()
        elif command == "help":
            print(HELP_TEXT)
        elif command == "cat":
            session.select_category(argument or ALL_CATEGORIES)
            self._show_menu()
        elif command == "search":
            session.search(argument)
            self._show_menu()
        elif command == "add":
            self._add(argument)
        elif command in ("+", "-", "rm"):
            self._change_line(command, argument)
        elif command == "cart":
            self._show_cart()
        elif command == "clear":
            session.state.cart.clear()
            print("Selection cleared.")
        elif command == "send":
            self._send()
        else:
            print(f"Unknown command: {command} (type 'help')")

    def _show_menu(self) -> None:
        print()
        print(render_menu_text(self.session.view()))

    def _add(self, argument: str) -> None:
        number, _, size = argument.partition(" ")
        keys = self.session.visible_item_keys()
        if not number.isdigit() or not 1 <= int(number) <= len(keys):
            print("Choose an item number from the list.")
            return
        try:
            entry = self.session.add(keys[int(number) - 1], size.strip() or None)
        except ItemUnavailableError:
            print("Sorry, that item is unavailable right now.")
            return
        except ValueError as e:
            print(f"⚠ {e}")
            return
        label = f"{entry.item_name} ({entry.size})" if entry.size else entry.item_name
        print(f"✓ {label} x{entry.quantity}")

    def _change_line(self, command: str, argument: str) -> None:
        entries = self.session.state.cart.entries
        if not argument.isdigit() or not 1 <= int(argument) <= len(entries):
            print("Choose a line number from your selection (see 'cart').")
            return
        key = entries[int(argument) - 1].key
        cart = self.session.state.cart
        if command == "rm":
            cart.remove(key)
        else:
            cart.adjust_quantity(key, 1 if command == "+" else -1)
        self._show_cart()

    def _show_cart(self) -> None:
        cart = self.session.state.cart
        if cart.is_empty:
            print("Your selection is empty.")
            return
        for number, entry in enumerate(cart.entries, start=1):
            label = f"{entry.item_name} ({entry.size})" if entry.size else entry.item_name
            print(f"{number:>3}. {entry.quantity} x {label}")
        print(f"     {cart.count} item(s)")

    def _send(self) -> None:
        summary = self.session.summary()
        copied = offer_summary(summary, copy_to_clipboard, self._print_summary)
        if copied:
            print("✓ Order summary copied. Show it to your waiter.")

    @staticmethod
    def _print_summary(summary: str) -> None:
        print("\nShow this to your waiter:\n")
        print("-" * 40)
        print(summary)
        print("-" * 40)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        config = get_config()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nCheck your environment variables or .env file.")
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Browse a restaurant menu")
    parser.add_argument(
        "restaurant",
        nargs="?",
        help="Restaurant id or menu URL (e.g. https://host/?r=spice-garden)",
    )
    parser.add_argument("--table", help="Table identifier for the order summary")
    args = parser.parse_args()

    restaurant_id = restaurant_id_from_argument(args.restaurant, config.default_restaurant_id)
    cli = MenuCLI(restaurant_id, table=args.table)
    cli.run()


if __name__ == "__main__":
    main()
