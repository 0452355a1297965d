"""
Per-file evidence analysis. Images get a multimodal call, PDFs a
metadata-only call; every other type gets a fixed note and no call.
"""
import logging

import prompt
from ai_client import ApiError

logger = logging.getLogger(__name__)

ANALYSIS_MAX_TOKENS = 100

AUDIO_PLACEHOLDER = "AI analysis for audio files is in development. The file has been logged as evidence."
VIDEO_PLACEHOLDER = "AI analysis for video files is in development. The file has been logged as evidence."
IMAGE_FALLBACK = "AI analysis could not be generated for this file."
DOCUMENT_FALLBACK = "AI analysis could not be generated for this document's metadata."


def unsupported_placeholder(mime_type: str) -> str:
    return f"Analysis for '{mime_type}' files is not yet supported."


def _analyze_image(client, file, narrative: str) -> str:
    if not file.payload:
        raise ApiError(f"No file content was provided for image '{file.name}'.")

    content = [
        {"type": "text", "text": prompt.build_image_prompt(file, narrative)},
        {
            "type": "image",
            "source": {"type": "base64", "media_type": file.type, "data": file.payload},
        },
    ]
    try:
        analysis = client.call_model(
            messages=[{"role": "user", "content": content}],
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
    except ApiError as e:
        raise ApiError("AI analysis for this image failed.", cause=e, retryable=e.retryable,
                       status_code=e.status_code) from e
    return analysis.strip() or IMAGE_FALLBACK


def _analyze_document(client, file, narrative: str) -> str:
    try:
        analysis = client.call_model(
            messages=[{"role": "user", "content": prompt.build_document_prompt(file, narrative)}],
            max_tokens=ANALYSIS_MAX_TOKENS,
        )
    except ApiError as e:
        raise ApiError("AI analysis for this document's metadata failed.", cause=e, retryable=e.retryable,
                       status_code=e.status_code) from e
    return analysis.strip() or DOCUMENT_FALLBACK


def analyze_evidence(client, file, narrative: str) -> str:
    """
    Return a short relevance note for one evidence file.
    Raises ApiError only for the image and PDF branches.
    """
    mime_type = (file.type or "").lower()

    if mime_type.startswith("image/"):
        branch = "image"
        result = _analyze_image(client, file, narrative)
    elif mime_type == "application/pdf":
        branch = "document"
        result = _analyze_document(client, file, narrative)
    elif mime_type.startswith("audio/"):
        branch = "audio"
        result = AUDIO_PLACEHOLDER
    elif mime_type.startswith("video/"):
        branch = "video"
        result = VIDEO_PLACEHOLDER
    else:
        branch = "unsupported"
        result = unsupported_placeholder(file.type)

    logger.info("Evidence analyzed | file=%s | type=%s | branch=%s", file.name, file.type, branch)
    return result
