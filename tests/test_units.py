# tests/test_units.py
"""
Unit tests for engineering number parsing and formatting.
"""

import math
import unittest
from simulation.units import parse_number, format_number


class TestParseNumber(unittest.TestCase):
    """Tests for parse_number."""

    def assertClose(self, actual, expected):
        self.assertTrue(math.isclose(actual, expected, rel_tol=1e-12), f"{actual} != {expected}")

    def test_plain_numbers(self):
        """Test integers, decimals and exponents."""
        self.assertEqual(parse_number("42"), 42.0)
        self.assertEqual(parse_number("-2.5"), -2.5)
        self.assertEqual(parse_number(".5"), 0.5)
        self.assertClose(parse_number("1e-9"), 1e-9)
        self.assertClose(parse_number("2.2E3"), 2200.0)

    def test_numeric_input_passes_through(self):
        """Test that ints and floats are returned as floats."""
        self.assertEqual(parse_number(3), 3.0)
        self.assertIsInstance(parse_number(3), float)
        self.assertEqual(parse_number(1.5), 1.5)

    def test_scale_suffixes(self):
        """Test engineering scale suffixes."""
        self.assertClose(parse_number("10n"), 1e-8)
        self.assertClose(parse_number("4.7k"), 4700.0)
        self.assertClose(parse_number("1m"), 1e-3)
        self.assertClose(parse_number("1meg"), 1e6)
        self.assertClose(parse_number("3mil"), 3 * 25.4e-6)
        self.assertClose(parse_number("20p"), 2e-11)
        self.assertClose(parse_number("1u"), 1e-6)
        self.assertClose(parse_number("2f"), 2e-15)

    def test_trailing_unit_ignored(self):
        """Test that a unit name after the suffix is ignored."""
        self.assertClose(parse_number("10ns"), 1e-8)
        self.assertClose(parse_number("100NS"), 1e-7)
        self.assertEqual(parse_number("5V"), 5.0)
        self.assertEqual(parse_number("1s"), 1.0)

    def test_hex_and_binary(self):
        """Test hex and binary literals."""
        self.assertEqual(parse_number("0x1F"), 31.0)
        self.assertEqual(parse_number("0b101"), 5.0)
        self.assertEqual(parse_number("-0x10"), -16.0)

    def test_whitespace(self):
        """Test surrounding whitespace is accepted."""
        self.assertClose(parse_number("  10ns "), 1e-8)

    def test_invalid(self):
        """Test that invalid values raise ValueError."""
        for bad in ("", "abc", "1.2.3", "ns", "1 0", True, None, [1]):
            with self.assertRaises(ValueError, msg=repr(bad)):
                parse_number(bad)


class TestFormatNumber(unittest.TestCase):
    """Tests for format_number."""

    def test_suffixes(self):
        self.assertEqual(format_number(1e-8), "10n")
        self.assertEqual(format_number(1500.0), "1.5k")
        self.assertEqual(format_number(2.5), "2.5")
        self.assertEqual(format_number(2e6), "2MEG")
        self.assertEqual(format_number(-3e-3), "-3m")

    def test_unit(self):
        self.assertEqual(format_number(1e-8, "s"), "10ns")
        self.assertEqual(format_number(0, "s"), "0s")

    def test_parse_round_trip(self):
        """Test that formatted values parse back to the same number."""
        for value in (1e-8, 4.7e3, 2.5e-12):
            self.assertTrue(math.isclose(parse_number(format_number(value)), value, rel_tol=1e-3))


if __name__ == '__main__':
    unittest.main()
