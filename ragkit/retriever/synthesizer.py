"""
Synthesizer

LLM-based answer synthesis from the documents stored for a session.

Key principle: answer only from the provided documents, and say so when
they do not contain the answer.
"""

import logging
import math
from typing import Optional, Sequence

from ..common.schemas import ScoredDocument
from .oracles import SynthesisOracle

logger = logging.getLogger("ragkit.retriever.synthesizer")

# Documents beyond this rank are left out of the prompt
MAX_PROMPT_DOCUMENTS = 5
DOCUMENT_SEPARATOR = "\n\n---\n\n"
CHARS_PER_TOKEN = 4

SUMMARY_PREFIX = "AI generated summary: "
EMPTY_SUMMARY = "No summary generated."

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on provided documents. "
    "Synthesize information from the documents to answer the user's question accurately "
    "and concisely. Use only the information in the documents. If the documents don't "
    "contain relevant information, say so explicitly."
)

USER_PROMPT = """Question: {question}

Relevant Documents:
{documents}"""


def format_documents_for_prompt(
    context: Sequence[ScoredDocument],
    limit: int = MAX_PROMPT_DOCUMENTS,
) -> str:
    """Render the top documents as labelled blocks"""
    blocks = [
        f"[Document {i}: {doc.title}]\n{doc.content}"
        for i, doc in enumerate(context[:limit], 1)
    ]
    return DOCUMENT_SEPARATOR.join(blocks)


def token_budget(max_length: int, cap: int = 1000) -> int:
    """Roughly one token per four characters of the requested answer length"""
    return min(math.ceil(max_length / CHARS_PER_TOKEN), cap)


class Synthesizer:
    """
    Builds the summarization prompt and calls the synthesis oracle.

    Errors from the oracle propagate to the caller unchanged.
    """

    def __init__(
        self,
        llm: Optional[SynthesisOracle],
        temperature: float = 0.3,
        max_tokens_cap: int = 1000,
    ):
        self._llm = llm
        self._temperature = temperature
        self._max_tokens_cap = max_tokens_cap

    @property
    def has_llm(self) -> bool:
        """Check if LLM is available"""
        if self._llm is None:
            return False
        return getattr(self._llm, "is_available", True)

    def build_prompt(self, question: str, context: Sequence[ScoredDocument]) -> str:
        return USER_PROMPT.format(
            question=question,
            documents=format_documents_for_prompt(context),
        )

    async def summarize(
        self,
        question: str,
        context: Sequence[ScoredDocument],
        max_length: int = 500,
    ) -> str:
        """
        Answer a question from the session documents.

        Returns:
            The answer text, prefixed with the AI-generated marker
        """
        if not self.has_llm:
            raise RuntimeError("LLM client is not available")

        max_tokens = token_budget(max_length, self._max_tokens_cap)
        logger.debug(
            "Summarizing %d of %d documents, max_tokens=%d",
            min(len(context), MAX_PROMPT_DOCUMENTS), len(context), max_tokens,
        )
        answer = await self._llm.generate(
            self.build_prompt(question, context),
            system=SYSTEM_PROMPT,
            max_tokens=max_tokens,
            temperature=self._temperature,
        )
        return SUMMARY_PREFIX + (answer or EMPTY_SUMMARY)
