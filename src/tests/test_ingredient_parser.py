"""Tests for the ingredient string parser."""

from src.services.ingredient_parser import ParsedIngredient, parse_ingredients_string


class TestParseIngredientsString:
    """Tests for parse_ingredients_string()."""

    def test_parses_multiple_entries(self):
        result = parse_ingredients_string("Tomato:500:g;Onion:1:unit")

        assert result.ingredients == (
            ParsedIngredient("Tomato", 500.0, "g"),
            ParsedIngredient("Onion", 1.0, "unit"),
        )
        assert result.errors == ()
        assert not result.is_empty

    def test_whitespace_around_fields_is_trimmed(self):
        result = parse_ingredients_string("  Olive Oil : 2.5 : tbsp ;  Salt:1:pinch  ")

        assert result.ingredients == (
            ParsedIngredient("Olive Oil", 2.5, "tbsp"),
            ParsedIngredient("Salt", 1.0, "pinch"),
        )

    def test_empty_segments_are_skipped(self):
        """Trailing and doubled separators are not errors."""
        result = parse_ingredients_string("Tomato:500:g;;  ;")
        assert len(result.ingredients) == 1
        assert result.errors == ()

    def test_empty_and_none_input(self):
        for text in ("", "   ", None, ";;"):
            result = parse_ingredients_string(text)
            assert result.ingredients == ()
            assert result.errors == ()
            assert result.is_empty

    def test_malformed_entry_does_not_hide_valid_ones(self):
        result = parse_ingredients_string("Tomato:500:g; BadEntry")

        assert result.ingredients == (ParsedIngredient("Tomato", 500.0, "g"),)
        assert result.errors == ("malformed entry: 'BadEntry', expected Name:Quantity:Unit",)

    def test_wrong_field_count_is_malformed(self):
        result = parse_ingredients_string("Tomato:500;Onion:1:unit:extra")

        assert result.ingredients == ()
        assert len(result.errors) == 2
        assert all(e.startswith("malformed entry") for e in result.errors)

    def test_empty_name_is_malformed(self):
        result = parse_ingredients_string(":5:g")
        assert result.errors == ("malformed entry: ':5:g', expected Name:Quantity:Unit",)

    def test_invalid_quantities(self):
        """Non-numeric, zero, negative and non-finite quantities are rejected."""
        result = parse_ingredients_string(
            "Tomato:abc:g;Onion:0:unit;Salt:-1:g;Pepper:nan:g;Sugar:inf:g"
        )

        assert result.ingredients == ()
        assert result.errors == (
            "invalid quantity 'abc' for ingredient 'Tomato'",
            "invalid quantity '0' for ingredient 'Onion'",
            "invalid quantity '-1' for ingredient 'Salt'",
            "invalid quantity 'nan' for ingredient 'Pepper'",
            "invalid quantity 'inf' for ingredient 'Sugar'",
        )

    def test_empty_unit_is_allowed(self):
        result = parse_ingredients_string("Eggs:2:")
        assert result.ingredients == (ParsedIngredient("Eggs", 2.0, ""),)

    def test_decimal_and_exponent_quantities(self):
        result = parse_ingredients_string("Saffron:0.25:g;Water:1e3:ml")
        assert [i.quantity for i in result.ingredients] == [0.25, 1000.0]

    def test_only_plain_decimal_quantities(self):
        """Digit separators and other non-spreadsheet number forms are rejected."""
        result = parse_ingredients_string("Tomato:1_000:g;Onion:0x10:unit;Salt:1e999:g;Oil:.5:ml")

        assert result.ingredients == (ParsedIngredient("Oil", 0.5, "ml"),)
        assert result.errors == (
            "invalid quantity '1_000' for ingredient 'Tomato'",
            "invalid quantity '0x10' for ingredient 'Onion'",
            "invalid quantity '1e999' for ingredient 'Salt'",
        )

    def test_order_is_preserved(self):
        result = parse_ingredients_string("C:1:g;A:2:g;B:3:g")
        assert [i.name for i in result.ingredients] == ["C", "A", "B"]

    def test_parsing_is_deterministic(self):
        text = "Tomato:500:g;Bad;Onion:x:unit"
        assert parse_ingredients_string(text) == parse_ingredients_string(text)
