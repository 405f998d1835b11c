"""Failure codes and user-facing messages."""

AUTH_FAILED = "AUTH_FAILED"
NETWORK_ERROR = "NETWORK_ERROR"
REMOTE_ERROR = "REMOTE_ERROR"
EMPTY_RESPONSE = "EMPTY_RESPONSE"
PROTOCOL_ERROR = "PROTOCOL_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

PROCESSING_FAILED_MESSAGE = (
    "Failed to process content. Please try again or check the file size/format."
)

ERROR_MESSAGES = {
    AUTH_FAILED: "Gemini API key is missing or invalid.",
    NETWORK_ERROR: "Could not reach the Gemini API.",
    REMOTE_ERROR: "Gemini API returned an error status.",
    EMPTY_RESPONSE: "No response from Gemini.",
    PROTOCOL_ERROR: "Gemini response does not match the expected JSON structure.",
    UNEXPECTED_ERROR: "Unexpected error while processing content.",
}


class InputRejected(Exception):
    """Raised by pre-flight validation before any request is built."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
