from export import EXPORT_FILENAME, build_export_text
from models import TranscriptionResult


def test_export_contains_both_sections() -> None:
    result = TranscriptionResult(original="Hello world", indonesian="Halo dunia", raw="{}")
    text = build_export_text(result)

    assert "ORIGINAL TRANSCRIPTION:" in text
    assert "INDONESIAN TRANSLATION:" in text
    assert text.index("Hello world") < text.index("-------------------") < text.index("Halo dunia")
    assert text == (
        "ORIGINAL TRANSCRIPTION:\n\nHello world\n\n"
        "-------------------\n\n"
        "INDONESIAN TRANSLATION:\n\nHalo dunia"
    )


def test_export_filename() -> None:
    assert EXPORT_FILENAME == "transcription-export.txt"
