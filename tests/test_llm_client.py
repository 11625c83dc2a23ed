"""
Feedback generation request shape, using a mocked OpenAI client.
"""

from unittest.mock import MagicMock

import pytest

from report_feedback.config import GeminiConfig
from report_feedback.llm_client import FeedbackGenerator


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def client():
    mock = MagicMock()
    mock.chat.completions.create.return_value = completion("## 良かった点\n- 丁寧")
    return mock


@pytest.fixture
def generator(client):
    return FeedbackGenerator(GeminiConfig(api_key="key"), client=client)


def test_generate_sends_system_and_user_messages(generator, client):
    feedback = generator.generate("SYSTEM", "## 業務内容\nタスクAを実施")

    assert feedback == "## 良かった点\n- 丁寧"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["temperature"] == 0.7
    assert kwargs["top_p"] == 0.95

    system, user = kwargs["messages"]
    assert system == {"role": "system", "content": "SYSTEM"}
    assert user["role"] == "user"
    assert user["content"].startswith("日報本文:\n## 業務内容\nタスクAを実施\n\n補足:\n")
    assert user["content"].endswith("文脈を読み取ってください。\n")


def test_report_text_is_not_escaped(generator):
    messages = generator.build_messages("S", "a < b & **c**")
    assert "a < b & **c**" in messages[1]["content"]


def test_empty_content_becomes_empty_string(generator, client):
    client.chat.completions.create.return_value = completion(None)
    assert generator.generate("S", "report") == ""


def test_api_errors_propagate(generator, client):
    client.chat.completions.create.side_effect = RuntimeError("429 Resource exhausted")

    with pytest.raises(RuntimeError, match="429"):
        generator.generate("S", "report")
    assert client.chat.completions.create.call_count == 1


def test_uses_configured_model(client):
    config = GeminiConfig(api_key="key", model="gemini-2.5-pro")
    FeedbackGenerator(config, client=client).generate("S", "r")
    assert client.chat.completions.create.call_args.kwargs["model"] == "gemini-2.5-pro"
