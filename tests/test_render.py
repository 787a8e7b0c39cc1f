from __future__ import annotations

from palette import Address, Color, InsertColor, Palette


def test_render_reference_scenario(scenario: Palette) -> None:
    text = scenario.render()
    assert text.splitlines() == [
        "DefaultPalette 1.0.0 [History: 3 items]",
        "Example",
        "[1 pages] [2 lines] [6 columns] [8 elements] [wrap 16:16]",
        "Page 0",
        "  Line 0",
        "    00:00:00  #32324E  0",
        "    00:00:01  #0000FF  0",
        "  Line 1",
        "    00:01:00  #2A2A67  2",
        "    00:01:01  #232380  2",
        "    00:01:02  #1C1C99  2",
        "    00:01:03  #1515B3  2",
        "    00:01:04  #0E0ECC  2",
        "    00:01:05  #0707E5  2",
    ]
    assert str(scenario) == text


def test_render_uses_format_names_and_overrides() -> None:
    pal = Palette("Quest", format="zpl")
    pal.apply(InsertColor(Color(1, 2, 3), Address(0, 0, 0)))
    pal.apply(InsertColor(Color(4, 5, 6), Address(1, 4, 0)))
    pal.set_name("1:*:*", "Overworld")
    lines = pal.render().splitlines()
    assert lines[0] == "ZplPalette 1.0.0 [History: 2 items]"
    assert "Page 0 - Main (Level 0)" in lines
    assert "  Line 0 - Main CSET 0" in lines
    assert "Page 1 - Overworld (Level 1)" in lines
    assert "  Line 4 - CSET 4 (2)" in lines
    assert lines[-1] == "    01:04:00  #040506  0"


def test_render_empty_palette() -> None:
    pal = Palette()
    assert pal.render().splitlines() == [
        "DefaultPalette 1.0.0 [History: 0 items]",
        "[0 pages] [0 lines] [0 columns] [0 elements] [wrap 16:16]",
    ]
