from models import TranscriptionResult

EXPORT_FILENAME = "transcription-export.txt"
DIVIDER = "-------------------"


def build_export_text(result: TranscriptionResult) -> str:
    return (
        f"ORIGINAL TRANSCRIPTION:\n\n{result.original}\n\n"
        f"{DIVIDER}\n\n"
        f"INDONESIAN TRANSLATION:\n\n{result.indonesian}"
    )
