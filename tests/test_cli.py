from importlib import resources

import numpy as np
import pytest
from PIL import Image

from main import main, parse_font_spec
from fontraster.text import FontStyle
from fontraster.text.font_manager import BUILTIN_FONT_FILES
from fontraster.text.text_renderer import TextRenderer


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FONTRASTER_FONT_DIRS", raising=False)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Fira Code:12", ("Fira Code", 12.0)),
        ("Noto Sans CJK JP:10.5", ("Noto Sans CJK JP", 10.5)),
        ("Fira Code", ("Fira Code", 26.0)),
    ],
)
def test_parse_font_spec(value, expected):
    assert parse_font_spec(value) == expected


def test_renders_to_auto_sized_canvas(tmp_path):
    output = tmp_path / "hello.png"

    assert main(["--text", "Hi\\nthere", "--output", str(output)]) == 0

    bounds = TextRenderer().measure_lines(["Hi", "there"], FontStyle.REGULAR)
    with Image.open(output) as image:
        assert image.width == bounds.right - min(bounds.left, 0)
        assert image.height == bounds.bottom - min(bounds.top, 0)
        assert np.array(image).any()


def test_renders_onto_input_image(tmp_path):
    source = tmp_path / "source.png"
    Image.new("RGBA", (200, 80), (0, 0, 255, 255)).save(source)
    output = tmp_path / "result.jpg"

    code = main(
        [
            "--text", "**Bold** and *italic*",
            "--styled",
            "--input", str(source),
            "--output", str(output),
            "--color", "yellow",
            "--font", "DejaVu Sans Mono:14",
            "-x", "5",
            "-y", "5",
        ]
    )

    assert code == 0
    with Image.open(output) as image:
        assert image.size == (200, 80)
        assert image.format == "JPEG"


def test_measure_prints_width_and_height(capsys):
    assert main(["--text", "Hi", "--measure", "--font", "DejaVu Sans Mono:20"]) == 0

    renderer = TextRenderer([("DejaVu Sans Mono", 20.0)])
    expected = f"width={renderer.get_text_length('Hi')} line_height={renderer.get_line_height()}"
    assert capsys.readouterr().out.strip() == expected


def test_output_required_without_measure():
    assert main(["--text", "Hi"]) == 2


def test_invalid_size_is_rejected():
    assert main(["--text", "Hi", "--measure", "--font", "Fira:0"]) == 2


def test_unparseable_size_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--text", "Hi", "--font", "Fira:big"])

    assert excinfo.value.code == 2


def test_no_loadable_font(tmp_path):
    code = main(
        [
            "--text", "Hi",
            "--measure",
            "--font", "Not A Real Family:12",
            "--font-dir", str(tmp_path),
        ]
    )

    assert code == 1


def test_text_outside_fixed_canvas_fails(tmp_path):
    output = tmp_path / "small.png"

    code = main(["--text", "Hello", "--width", "5", "--height", "5", "--output", str(output)])

    assert code == 1
    assert not output.exists()


@pytest.mark.parametrize(
    "style,text",
    [("italic", "W"), ("italic", "_"), ("bold_italic", "W_f"), ("regular", "_")],
)
def test_auto_sized_canvas_fits_overhanging_ink(tmp_path, style, text):
    output = tmp_path / "slanted.png"

    assert main(["--style", style, "--text", text, "--output", str(output)]) == 0

    with Image.open(output) as image:
        assert np.array(image).any()


def test_styled_auto_sized_canvas(tmp_path):
    output = tmp_path / "styled.png"

    assert main(["--styled", "--text", "*W* and ***_***", "--output", str(output)]) == 0

    bounds = TextRenderer().measure_text("*W* and ***_***", FontStyle.REGULAR, styled=True)
    with Image.open(output) as image:
        assert image.width == bounds.right - min(bounds.left, 0)


def test_missing_character_is_reported_once(tmp_path, caplog):
    output = tmp_path / "cjk.png"

    assert main(["--text", "a一", "--output", str(output)]) == 0

    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("No font found for character '一'") == 1


def test_measure_reports_missing_character_once(caplog):
    assert main(["--text", "a一", "--measure"]) == 0

    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("No font found for character '一'") == 1


def test_list_fonts(tmp_path, capsys):
    assets = resources.files("fontraster") / "assets" / "fonts"
    for filename in BUILTIN_FONT_FILES.values():
        (tmp_path / filename).write_bytes((assets / filename).read_bytes())

    assert main(["--list-fonts", "--font-dir", str(tmp_path)]) == 0

    assert capsys.readouterr().out.splitlines() == ["DejaVu Sans Mono"]


def test_text_required_without_list_fonts():
    assert main(["--measure"]) == 2
