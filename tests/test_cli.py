"""Tests for the diner command-line interface."""

import pytest

from qrmenu import cli as cli_module
from qrmenu.cli import MenuCLI, restaurant_id_from_argument
from qrmenu.services.cart import ClipboardUnavailableError
from qrmenu.services.diner_session import DinerSession
from qrmenu.services.fallback_menus import builtin_menu


@pytest.fixture
def menu_cli():
    """CLI with the built-in spice-garden menu already loaded."""
    cli = MenuCLI("spice-garden", table="4")
    cli.session = DinerSession(
        "spice-garden", builtin_menu("spice-garden", "ajwa"), table="4"
    )
    return cli


class TestRestaurantArgument:
    """Test restaurant selection from the command line."""

    def test_bare_id(self):
        """Test a plain identifier."""
        assert restaurant_id_from_argument("spice-garden", "ajwa") == "spice-garden"

    def test_menu_url(self):
        """Test a scanned QR-code URL."""
        assert restaurant_id_from_argument("https://menu.example/?r=cafe", "ajwa") == "cafe"
        assert restaurant_id_from_argument("https://menu.example/", "ajwa") == "ajwa"

    def test_missing(self):
        """Test the default."""
        assert restaurant_id_from_argument(None, "ajwa") == "ajwa"


class TestMenuCLI:
    """Test command handling."""

    def test_add_and_adjust(self, menu_cli):
        """Test selecting by number and changing quantities."""
        cart = menu_cli.session.state.cart

        menu_cli.handle("add 1")
        menu_cli.handle("add 1")
        assert cart.count == 2

        menu_cli.handle("- 1")
        assert cart.count == 1

        menu_cli.handle("rm 1")
        assert cart.is_empty

    def test_add_out_of_range(self, menu_cli, capsys):
        """Test an item number that is not listed."""
        menu_cli.handle("add 99")

        assert "Choose an item number" in capsys.readouterr().out
        assert menu_cli.session.state.cart.is_empty

    def test_search_and_category(self, menu_cli):
        """Test filters."""
        menu_cli.handle("search samo")
        assert menu_cli.session.state.search_query == "samo"

        menu_cli.handle("cat Starters")
        assert menu_cli.session.state.active_category == "Starters"

    def test_send_falls_back_to_printing(self, menu_cli, monkeypatch, capsys):
        """Test the summary is shown when no clipboard is available."""

        def denied(_text):
            raise ClipboardUnavailableError("no clipboard")

        monkeypatch.setattr(cli_module, "copy_to_clipboard", denied)
        menu_cli.handle("add 1")
        menu_cli.handle("send")

        out = capsys.readouterr().out
        assert "Show this to your waiter" in out
        assert "Table: 4" in out

    def test_copy_without_clipboard_programs(self, monkeypatch):
        """Test that missing clipboard programs raise the fallback error."""
        monkeypatch.setattr(cli_module.shutil, "which", lambda _name: None)

        with pytest.raises(ClipboardUnavailableError):
            cli_module.copy_to_clipboard("order")
