import pytest

from conftest import FakeFontProgram, FakeHandle, FakeStore
from fontraster.text.font_set import FallbackChain, FontSet, FontStyle
from utils.exceptions import FontError, ValidationError


def make_store():
    return FakeStore(
        {
            "Good": [FakeHandle("normal", 400, FakeFontProgram(name="good"))],
            "Broken": [FakeHandle("normal", 400, fail=True)],
            "BoldOnly": [FakeHandle("normal", 700, FakeFontProgram(name="bold"))],
        }
    )


class TestFromFontList:
    def test_keeps_loadable_entries_in_order(self, diagnostics):
        chain = FallbackChain.from_font_list(
            [("Good", 12), ("Missing", 10), ("Good", 20.5)],
            store=make_store(),
            diagnostics=diagnostics.append,
        )

        assert [font_set.size for font_set in chain] == [12.0, 20.5]
        assert diagnostics == [
            "Failed to load font 'Missing': No font family named 'Missing' was found"
        ]

    def test_every_failure_kind_is_reported_not_raised(self, diagnostics):
        chain = FallbackChain.from_font_list(
            [("Missing", 12), ("Broken", 12), ("BoldOnly", 12)],
            store=make_store(),
            diagnostics=diagnostics.append,
        )

        assert len(chain) == 0
        assert len(diagnostics) == 3
        assert diagnostics[0].startswith("Failed to load font 'Missing'")
        assert diagnostics[1].startswith("Failed to load font 'Broken'")
        assert diagnostics[2].startswith("Failed to load font 'BoldOnly'")

    def test_empty_list_gives_empty_chain(self, diagnostics):
        chain = FallbackChain.from_font_list([], store=make_store(), diagnostics=diagnostics.append)

        assert len(chain) == 0
        assert diagnostics == []

    @pytest.mark.parametrize(
        "font_list",
        [
            "Good",
            [("Good",)],
            [("Good", 12, "extra")],
            [("", 12)],
            [(None, 12)],
            [("Good", 0)],
            [("Good", -3.5)],
            [("Good", "12")],
            [("Good", True)],
        ],
    )
    def test_malformed_list_raises(self, font_list):
        with pytest.raises(ValidationError):
            FallbackChain.from_font_list(font_list, store=make_store())

    def test_diagnostics_sink_is_kept_for_lookups(self, diagnostics):
        chain = FallbackChain.from_font_list(
            [("Good", 12)], store=make_store(), diagnostics=diagnostics.append
        )

        chain.resolve_glyph("€", FontStyle.REGULAR)

        assert diagnostics == ["No font found for character '€'"]


class TestResolveGlyph:
    def test_first_set_with_glyph_wins(self, diagnostics):
        first = FakeFontProgram(chars="ab", name="first")
        second = FakeFontProgram(chars="bc", name="second")
        chain = FallbackChain(
            [FontSet(size=10.0, regular=first), FontSet(size=20.0, regular=second)],
            diagnostics=diagnostics.append,
        )

        glyph_id, font_set, program = chain.resolve_glyph("b", FontStyle.REGULAR)
        assert program is first
        assert font_set.size == 10.0
        assert glyph_id == first.glyph_for_char("b")

        _, font_set, program = chain.resolve_glyph("c", FontStyle.REGULAR)
        assert program is second
        assert font_set.size == 20.0
        assert diagnostics == []

    def test_uses_requested_style_program(self):
        regular = FakeFontProgram(chars="a", name="regular")
        bold = FakeFontProgram(chars="b", name="bold")
        fallback = FakeFontProgram(chars="a", name="fallback")
        chain = FallbackChain(
            [FontSet(size=10.0, regular=regular, bold=bold), FontSet(size=10.0, regular=fallback)],
            diagnostics=lambda message: None,
        )

        assert chain.resolve_glyph("b", FontStyle.BOLD)[2] is bold
        # The bold program has no "a", so the next set is tried
        assert chain.resolve_glyph("a", FontStyle.BOLD)[2] is fallback
        assert chain.resolve_glyph("a", FontStyle.ITALIC)[2] is regular

    def test_unresolved_character_is_reported(self, fake_chain, diagnostics):
        assert fake_chain.resolve_glyph("一", FontStyle.REGULAR) is None
        assert diagnostics == ["No font found for character '一'"]

    def test_unresolved_character_can_go_unreported(self, fake_chain, diagnostics):
        assert fake_chain.resolve_glyph("一", FontStyle.REGULAR, report=False) is None
        assert diagnostics == []


class TestChainHeight:
    def test_height_is_tallest_set(self):
        chain = FallbackChain(
            [FontSet(size=size, regular=FakeFontProgram()) for size in (10.0, 15.0, 12.0)]
        )

        assert chain.get_height() == 15

    def test_empty_chain_height_raises(self):
        with pytest.raises(FontError):
            FallbackChain([]).get_height()

    def test_empty_chain_first_raises(self):
        with pytest.raises(FontError):
            FallbackChain([]).first()

    def test_first_returns_first_set(self, fake_chain):
        assert fake_chain.first() is fake_chain.font_sets[0]


def test_default_chain_is_builtin_family():
    chain = FallbackChain.default()

    assert len(chain) == 1
    assert chain.first().size == 26.0
    assert chain.first().regular.glyph_for_char("A") is not None
