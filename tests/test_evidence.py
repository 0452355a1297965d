import anthropic
import httpx
import pytest

from ai_client import ApiError
from evidence import (
    ANALYSIS_MAX_TOKENS,
    AUDIO_PLACEHOLDER,
    DOCUMENT_FALLBACK,
    IMAGE_FALLBACK,
    VIDEO_PLACEHOLDER,
    analyze_evidence,
    unsupported_placeholder,
)
from models import EvidenceFile

NARRATIVE = "The other parent sent a message at 9pm refusing the exchange."


def test_image_takes_multimodal_branch(make_client):
    client, fake = make_client("This screenshot corroborates the 9pm refusal.")
    file = EvidenceFile(name="texts.png", type="image/png", category="Screenshot",
                        description="Refusal message", payload="iVBORw0KGgo=")

    result = analyze_evidence(client, file, NARRATIVE)

    assert result == "This screenshot corroborates the 9pm refusal."
    call = fake.calls[0]
    assert call["max_tokens"] == ANALYSIS_MAX_TOKENS
    text_block, image_block = call["messages"][0]["content"]
    assert NARRATIVE in text_block["text"]
    assert "- Name: texts.png" in text_block["text"]
    assert "- User Description: Refusal message" in text_block["text"]
    assert image_block["source"] == {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="}


def test_image_without_payload_fails_without_call(make_client):
    client, fake = make_client()
    with pytest.raises(ApiError):
        analyze_evidence(client, EvidenceFile(name="x.jpg", type="image/jpeg"), NARRATIVE)
    assert fake.calls == []


def test_image_empty_answer_falls_back(make_client):
    client, _ = make_client("  ")
    file = EvidenceFile(name="x.jpg", type="image/jpeg", payload="abc")
    assert analyze_evidence(client, file, NARRATIVE) == IMAGE_FALLBACK


def test_pdf_takes_metadata_branch(make_client):
    client, fake = make_client("The order could establish the exchange schedule.")
    file = EvidenceFile(name="order.pdf", type="application/pdf", category="Document",
                        payload="JVBERi0xLjQ=")

    result = analyze_evidence(client, file, NARRATIVE)

    assert result == "The order could establish the exchange schedule."
    call = fake.calls[0]
    assert call["max_tokens"] == ANALYSIS_MAX_TOKENS
    content = call["messages"][0]["content"]
    assert isinstance(content, str)
    assert "- Name: order.pdf" in content
    assert "- User Description: Not provided." in content
    assert "Do not speculate about the document's specific contents" in content
    assert "JVBERi0xLjQ=" not in content


def test_pdf_empty_answer_falls_back(make_client):
    client, _ = make_client("")
    assert analyze_evidence(client, EvidenceFile(name="a.pdf", type="application/pdf"), NARRATIVE) == DOCUMENT_FALLBACK


@pytest.mark.parametrize("mime,expected", [
    ("audio/mpeg", AUDIO_PLACEHOLDER),
    ("video/mp4", VIDEO_PLACEHOLDER),
    ("application/zip", unsupported_placeholder("application/zip")),
    ("", unsupported_placeholder("")),
])
def test_placeholder_branches_make_no_calls(make_client, mime, expected):
    client, fake = make_client()
    assert analyze_evidence(client, EvidenceFile(name="f", type=mime), NARRATIVE) == expected
    assert fake.calls == []


def test_unsupported_placeholder_names_type():
    assert unsupported_placeholder("application/zip") == "Analysis for 'application/zip' files is not yet supported."


def test_placeholders_work_without_credential(make_client, no_key_config):
    client, _ = make_client(cfg=no_key_config)
    assert analyze_evidence(client, EvidenceFile(name="a.mp3", type="audio/mpeg"), NARRATIVE) == AUDIO_PLACEHOLDER


def test_image_transport_failure_wrapped(make_client):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    client, _ = make_client(anthropic.APIConnectionError(request=request))
    file = EvidenceFile(name="x.png", type="image/png", payload="abc")
    with pytest.raises(ApiError) as exc:
        analyze_evidence(client, file, NARRATIVE)
    assert exc.value.message == "AI analysis for this image failed."
    assert exc.value.retryable


def test_pdf_without_credential_fails(make_client, no_key_config):
    client, fake = make_client(cfg=no_key_config)
    with pytest.raises(ApiError):
        analyze_evidence(client, EvidenceFile(name="a.pdf", type="application/pdf"), NARRATIVE)
    assert fake.calls == []
