"""
Prompt Assembly

Merges the persona prompt with retrieved website content. The context
block is fenced by fixed headers and instructs the model to answer from
it and to admit when the answer is missing. This is prompt-level guidance
only; nothing in code verifies the model followed it.
"""

CONTEXT_SEPARATOR = "\n\n---\n\n"
CONTEXT_HEADER = "### CONTEXT FROM WEBSITE (READ-ONLY)"
CONTEXT_FOOTER = "### END CONTEXT"
CONTEXT_INSTRUCTIONS = (
    "The following content is retrieved from the user's website. "
    "Use it to answer questions.\n"
    "If the answer is not in the context, say you don't know "
    "(unless it's general knowledge allowed by your persona).\n"
    "Do not hallucinate facts about the website."
)


def build_system_prompt(base_prompt: str, context_chunks: list[str] | None) -> str:
    """
    Build the system prompt for one chat turn.

    Args:
        base_prompt: Persona prompt from the assistant configuration
        context_chunks: Retrieved chunk contents, most relevant first

    Returns:
        ``base_prompt`` unchanged when there is no context, otherwise the
        prompt followed by the labeled context block
    """
    if not context_chunks:
        return base_prompt

    context_block = CONTEXT_SEPARATOR.join(context_chunks)
    return (
        f"{base_prompt}\n\n"
        f"{CONTEXT_HEADER}\n"
        f"{CONTEXT_INSTRUCTIONS}\n\n"
        f"{context_block}\n\n"
        f"{CONTEXT_FOOTER}\n"
    )
