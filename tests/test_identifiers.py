"""Tests for slugs and restaurant identifiers."""

from qrmenu.identifiers import SLUG_MAX_LENGTH, restaurant_id_from_url, slugify


class TestSlugify:
    """Test slug generation."""

    def test_basic(self):
        """Test lowercasing and separator collapsing."""
        assert slugify("Starters & Sides") == "starters-and-sides"
        assert slugify("  Chef's  Special!! ") == "chef-s-special"

    def test_empty_is_untitled(self):
        """Test names with nothing slug-worthy."""
        assert slugify("") == "untitled"
        assert slugify(None) == "untitled"
        assert slugify("!!!") == "untitled"

    def test_length_limit(self):
        """Test truncation."""
        assert len(slugify("a" * 200)) == SLUG_MAX_LENGTH

    def test_deterministic(self):
        """Test that the same name always yields the same slug."""
        assert slugify("Chicken Mandi") == slugify("Chicken Mandi") == "chicken-mandi"


class TestRestaurantIdFromUrl:
    """Test identifier extraction from menu URLs."""

    def test_query_parameter(self):
        """Test ``r`` and ``restaurant`` parameters."""
        assert restaurant_id_from_url("https://menu.example/?r=spice-garden", "ajwa") == "spice-garden"
        assert restaurant_id_from_url("https://menu.example/?restaurant=cafe", "ajwa") == "cafe"

    def test_query_beats_fragment(self):
        """Test priority order."""
        assert restaurant_id_from_url("https://menu.example/?r=one#two", "ajwa") == "one"

    def test_fragment(self):
        """Test fragment identifiers."""
        assert restaurant_id_from_url("https://menu.example/#spice-garden", "ajwa") == "spice-garden"

    def test_path_segment(self):
        """Test the sub-path heuristic."""
        assert restaurant_id_from_url("https://host/qr-menu/spice-garden", "ajwa") == "spice-garden"
        assert restaurant_id_from_url("https://host/qr-menu/index.html", "ajwa") == "ajwa"

    def test_default(self):
        """Test URLs without an identifier."""
        assert restaurant_id_from_url("https://menu.example/", "ajwa") == "ajwa"
        assert restaurant_id_from_url("https://menu.example/?r=", "ajwa") == "ajwa"
