"""Tests for price parsing and formatting."""

from qrmenu.pricing import default_price, format_price, parse_price


class TestParsePrice:
    """Test parse_price."""

    def test_numbers_and_numeric_strings(self):
        """Test accepted inputs."""
        assert parse_price(3) == 3.0
        assert parse_price(3.5) == 3.5
        assert parse_price(" 4.25 ") == 4.25

    def test_rejected_inputs(self):
        """Test inputs that are not prices."""
        for value in [None, "", "   ", "abc", True, float("nan"), float("inf"), "inf"]:
            assert parse_price(value) is None, value


class TestDefaultPrice:
    """Test the default price policy."""

    def test_flat_price_without_sizes(self):
        """Test that items without sizes use their flat price."""
        assert default_price(5) == 5.0

    def test_first_listed_size_wins(self):
        """Test that the first size with a finite price is the default."""
        assert default_price(None, [520, 280, 980]) == 520.0
        assert default_price(None, [None, "x", 280]) == 280.0

    def test_sizes_take_precedence_over_flat_price(self):
        """Test precedence when both are present."""
        assert default_price(100, [280]) == 280.0

    def test_nothing_usable(self):
        """Test that no usable price yields None."""
        assert default_price(None, [None]) is None


class TestFormatPrice:
    """Test currency formatting."""

    def test_inr(self):
        """Test the spice-garden rendering of 3.50 rupees."""
        assert format_price(3.5, "INR", "en_US") == "₹3.50"

    def test_usd(self):
        """Test dollar formatting."""
        assert format_price(12, "USD", "en_US") == "$12.00"

    def test_missing_and_non_numeric(self):
        """Test values that are not numbers."""
        assert format_price(None) == ""
        assert format_price("Market price") == "Market price"

    def test_unknown_locale_falls_back(self):
        """Test that an unusable locale still produces a price."""
        assert format_price(3.5, "INR", "zz_ZZ") == "$3.50"
