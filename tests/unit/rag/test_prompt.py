"""Tests for system prompt assembly."""

from sitechat.rag.prompt import (
    CONTEXT_FOOTER,
    CONTEXT_HEADER,
    CONTEXT_SEPARATOR,
    build_system_prompt,
)

BASE = "You are a helpful assistant for Acme."


class TestBuildSystemPrompt:
    """Context block assembly."""

    def test_no_context_returns_base(self):
        assert build_system_prompt(BASE, []) == BASE
        assert build_system_prompt(BASE, None) == BASE

    def test_context_block_layout(self):
        prompt = build_system_prompt(BASE, ["Alice is the founder.", "Founded in 2019."])

        assert prompt.startswith(BASE + "\n\n" + CONTEXT_HEADER + "\n")
        assert prompt.endswith("\n\n" + CONTEXT_FOOTER + "\n")
        assert "Alice is the founder." + CONTEXT_SEPARATOR + "Founded in 2019." in prompt
        assert "say you don't know" in prompt

    def test_chunks_keep_relevance_order(self):
        prompt = build_system_prompt(BASE, ["most relevant", "less relevant"])

        assert prompt.index("most relevant") < prompt.index("less relevant")

    def test_base_prompt_precedes_context(self):
        prompt = build_system_prompt(BASE, ["chunk"])

        assert prompt.index(BASE) < prompt.index(CONTEXT_HEADER) < prompt.index("chunk")
