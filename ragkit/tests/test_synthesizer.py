"""Tests for the summarization prompt and Synthesizer."""

import pytest

from ragkit.common.schemas import ScoredDocument
from ragkit.retriever.synthesizer import (
    DOCUMENT_SEPARATOR,
    SUMMARY_PREFIX,
    SYSTEM_PROMPT,
    Synthesizer,
    format_documents_for_prompt,
    token_budget,
)


def _docs(n: int):
    return [
        ScoredDocument(id=i, title=f"Title {i}", content=f"Content {i}", tags=[], score=float(10 - i))
        for i in range(1, n + 1)
    ]


class RecordingLLM:
    def __init__(self, answer: str = "The answer."):
        self.answer = answer
        self.calls = []

    async def generate(self, prompt, *, system=None, max_tokens=512, temperature=None):
        self.calls.append({
            "prompt": prompt,
            "system": system,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        return self.answer


class TestPromptFormatting:
    def test_labelled_blocks(self):
        text = format_documents_for_prompt(_docs(2))
        assert text == "[Document 1: Title 1]\nContent 1" + DOCUMENT_SEPARATOR + "[Document 2: Title 2]\nContent 2"

    def test_caps_at_five_documents(self):
        text = format_documents_for_prompt(_docs(8))
        assert "[Document 5: Title 5]" in text
        assert "Title 6" not in text

    def test_system_prompt_requires_saying_when_insufficient(self):
        assert "only" in SYSTEM_PROMPT.lower()
        assert "say so" in SYSTEM_PROMPT.lower()


class TestTokenBudget:
    def test_quarter_of_length_rounded_up(self):
        assert token_budget(500) == 125
        assert token_budget(501) == 126
        assert token_budget(1) == 1

    def test_capped(self):
        assert token_budget(100_000) == 1000
        assert token_budget(100_000, cap=200) == 200


class TestSynthesizer:
    @pytest.mark.asyncio
    async def test_summary_is_marked_and_uses_low_temperature(self):
        llm = RecordingLLM("Vector databases store embeddings.")
        synth = Synthesizer(llm, temperature=0.3)

        summary = await synth.summarize("What are vector databases?", _docs(2), max_length=400)

        assert summary == SUMMARY_PREFIX + "Vector databases store embeddings."
        call = llm.calls[0]
        assert call["system"] == SYSTEM_PROMPT
        assert call["max_tokens"] == 100
        assert call["temperature"] == 0.3
        assert call["prompt"].startswith("Question: What are vector databases?\n\nRelevant Documents:\n")

    @pytest.mark.asyncio
    async def test_empty_answer_gets_placeholder(self):
        synth = Synthesizer(RecordingLLM(""))
        summary = await synth.summarize("q", _docs(1))
        assert summary == SUMMARY_PREFIX + "No summary generated."

    @pytest.mark.asyncio
    async def test_missing_llm_raises(self):
        synth = Synthesizer(None)
        assert not synth.has_llm
        with pytest.raises(RuntimeError, match="not available"):
            await synth.summarize("q", _docs(1))

    @pytest.mark.asyncio
    async def test_unavailable_client_raises(self):
        from ragkit.common.llm_client import LLMClient

        synth = Synthesizer(LLMClient(provider="openai"))
        with pytest.raises(RuntimeError, match="not available"):
            await synth.summarize("q", _docs(1))
