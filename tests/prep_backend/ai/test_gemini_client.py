from types import SimpleNamespace

import pytest

from prep_backend.ai.client import (
    AIProviderError,
    AIResponseFormatError,
    GeminiClient,
    parse_json_reply,
    strip_code_fences,
)


@pytest.mark.parametrize(
    ('raw_text', 'expected'),
    [
        ('```json\n[{"question":"Q1"}]\n```', '[{"question":"Q1"}]'),
        ('  ```json [1, 2]```  ', '[1, 2]'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('{"a": 1}', '{"a": 1}'),
    ],
)
def test_strip_code_fences(raw_text: str, expected: str) -> None:
    assert strip_code_fences(raw_text) == expected


def test_parse_json_reply_raises_typed_error_with_cleaned_text() -> None:
    with pytest.raises(AIResponseFormatError) as exception_info:
        parse_json_reply('```json\n{broken\n```')

    assert exception_info.value.raw_text == '{broken'


class _FakeModels:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.error is not None:
            raise self.error
        return self.response


def _client_with(models: _FakeModels) -> GeminiClient:
    client = GeminiClient(api_key='test-key', model='gemini-test')
    client._client = SimpleNamespace(models=models)
    return client


def test_generate_json_sends_prompt_to_configured_model() -> None:
    models = _FakeModels(response=SimpleNamespace(text='```json\n{"title": "T"}\n```'))

    assert _client_with(models).generate_json('explain') == {'title': 'T'}
    assert models.calls == [('gemini-test', 'explain')]


def test_generate_text_wraps_provider_errors() -> None:
    models = _FakeModels(error=RuntimeError('503 from upstream'))

    with pytest.raises(AIProviderError, match='503 from upstream'):
        _client_with(models).generate_text('prompt')


def test_generate_text_rejects_empty_reply() -> None:
    with pytest.raises(AIProviderError):
        _client_with(_FakeModels(response=SimpleNamespace(text=None))).generate_text('prompt')
