import base64

import pytest

from config import CAPABILITY_DEFAULTS, DOCUMENT_PREFIX
from gateway.errors import UnsupportedFormatError, ValidationError
from gateway.models import Capability, ChatCompletionBody, ImageGenerationBody, SpeechBody, UploadedFile
from gateway.services import normalizers


def test_chat_model_forwarded_unchanged():
    body = ChatCompletionBody(model="gpt-4.1", messages=[{"role": "user", "content": "hi"}], temperature=0.2)
    normalized = normalizers.normalize_chat(body)
    assert normalized.capability is Capability.CHAT
    assert normalized.model == "gpt-4.1"
    assert normalized.payload == {
        "model": "gpt-4.1",
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.2,
    }


def test_chat_model_defaulted_when_absent():
    normalized = normalizers.normalize_chat(ChatCompletionBody(messages=[{"role": "user", "content": "hi"}]))
    assert normalized.payload["model"] == CAPABILITY_DEFAULTS[Capability.CHAT].default_model
    assert normalized.model == normalized.payload["model"]


def test_chat_malformed_messages_are_passed_through():
    normalized = normalizers.normalize_chat(ChatCompletionBody(messages=[{"rol": "nobody"}]))
    assert normalized.payload["messages"] == [{"rol": "nobody"}]
    assert "messages" not in normalizers.normalize_chat(ChatCompletionBody()).payload


@pytest.mark.parametrize("raw", [None, "", "abc", "1.5", "  ", True])
def test_max_tokens_falls_back_to_default(raw):
    assert normalizers.parse_max_tokens(raw, 300) == 300


def test_max_tokens_parses_integers():
    assert normalizers.parse_max_tokens("512", 300) == 512
    assert normalizers.parse_max_tokens(" 42 ", 300) == 42
    assert normalizers.parse_max_tokens(77, 300) == 77


@pytest.mark.parametrize(
    "normalize",
    [normalizers.normalize_pdf, normalizers.normalize_image, normalizers.normalize_document],
)
def test_file_normalizers_require_a_file(normalize):
    with pytest.raises(ValidationError, match="No file uploaded"):
        normalize(None)


def test_image_normalizer_builds_vision_message():
    upload = UploadedFile(buffer=b"\x89PNG", mime_type="image/png", filename="cat.png")
    normalized = normalizers.normalize_image(upload, max_tokens="oops")

    content = normalized.payload["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "What is in this image?"}
    encoded = base64.b64encode(b"\x89PNG").decode()
    assert content[1]["image_url"]["url"] == f"data:image/png;base64,{encoded}"
    assert normalized.payload["max_tokens"] == 300
    assert normalized.payload["model"] == CAPABILITY_DEFAULTS[Capability.VISION].default_model


def test_pdf_normalizer_tags_data_uri_as_pdf():
    upload = UploadedFile(buffer=b"%PDF-1.4", mime_type="application/octet-stream", filename="a.pdf")
    normalized = normalizers.normalize_pdf(upload, prompt="Summarize", model="gpt-4o-mini", max_tokens="123")

    content = normalized.payload["messages"][0]["content"]
    assert content[0]["text"] == "Summarize"
    assert content[1]["image_url"]["url"].startswith("data:application/pdf;base64,")
    assert normalized.payload["model"] == "gpt-4o-mini"
    assert normalized.payload["max_tokens"] == 123


def test_document_normalizer_builds_prompt(monkeypatch):
    monkeypatch.setattr(normalizers, "extract_text", lambda buffer, mime: "Hola mundo")
    upload = UploadedFile(buffer=b"...", mime_type="application/pdf", filename="a.pdf")

    normalized = normalizers.normalize_document(upload, action="translate", prompt="German")

    message = normalized.payload["messages"][0]
    assert message["role"] == "user"
    assert message["content"].startswith(DOCUMENT_PREFIX + "Hola mundo")
    assert "Translate the document above into German" in message["content"]
    assert normalized.payload["max_tokens"] == 4000


def test_document_normalizer_rejects_empty_text(monkeypatch):
    monkeypatch.setattr(normalizers, "extract_text", lambda buffer, mime: "  \n ")
    upload = UploadedFile(buffer=b"...", mime_type="application/pdf")
    with pytest.raises(ValidationError, match="Could not extract text"):
        normalizers.normalize_document(upload)


def test_document_normalizer_unsupported_type():
    upload = UploadedFile(buffer=b"plain", mime_type="text/plain")
    with pytest.raises(UnsupportedFormatError, match="text/plain"):
        normalizers.normalize_document(upload)


def test_document_instruction_defaults():
    action, instruction = normalizers.build_document_instruction(None, None)
    assert action == "default"
    assert instruction == "\n\nSummarize the document above."

    action, instruction = normalizers.build_document_instruction("FIX", "  ")
    assert action == "fix"
    assert instruction.endswith("Return only the corrected text.")

    action, _ = normalizers.build_document_instruction("dance", "x")
    assert action == "default"


def test_speech_requires_input_and_voice():
    with pytest.raises(ValidationError):
        normalizers.normalize_speech(SpeechBody(input="hello"))
    normalized = normalizers.normalize_speech(SpeechBody(input="hello", voice="alloy"))
    assert normalized.payload == {"input": "hello", "voice": "alloy", "model": "tts-1"}


def test_image_generation_defaults():
    with pytest.raises(ValidationError, match="No prompt provided"):
        normalizers.normalize_image_generation(ImageGenerationBody())
    normalized = normalizers.normalize_image_generation(ImageGenerationBody(prompt="a fox", n=2))
    assert normalized.payload == {"prompt": "a fox", "n": 2, "size": "1024x1024", "model": "dall-e-3"}


def test_image_search_requires_query():
    with pytest.raises(ValidationError, match="No query provided"):
        normalizers.normalize_image_search("   ")
    assert normalizers.normalize_image_search(" cats ").payload == {"query": "cats"}


def test_chat_non_string_model_is_forwarded_untouched():
    normalized = normalizers.normalize_chat(ChatCompletionBody(model=5, messages="hi"))
    assert normalized.payload == {"model": 5, "messages": "hi"}
    assert normalized.model is None
