"""Writing-assistant touchpoint.

The core never talks to a text-generation service.  It only builds the
chat messages for the three editor actions and defines how a reply is
appended to a note.  The appended text is ordinary content: tags and
references in it are picked up by the scanner like any other text.
"""

from __future__ import annotations

from typing import Protocol

SYSTEM_PROMPT = (
    "You are an expert writing assistant for a knowledge base. "
    "Keep structure, use concise bullet points where helpful."
)

PROMPTS: dict[str, str] = {
    "summarize": (
        "Summarize the following note into key bullet points and an executive summary."
        "\n\n{note}"
    ),
    "refactor": (
        "Propose a cleaned-up, more structured rewrite of the note. Preserve facts."
        "\n\n{note}"
    ),
    "link_ideas": (
        "Generate a list of useful links (as [[Wiki Links]]) that this note should connect to."
        "\n\n{note}"
    ),
}

OUTPUT_SEPARATOR = "\n\n---\nAI Output:\n"


class TextGenerator(Protocol):
    """Anything that turns chat messages into a reply string."""

    def __call__(self, messages: list[dict[str, str]]) -> str: ...


def build_messages(action: str, content: str) -> list[dict[str, str]]:
    """Chat messages for *action* (a key of :data:`PROMPTS`) over *content*."""
    try:
        template = PROMPTS[action]
    except KeyError:
        raise ValueError(f"Unknown assistant action {action!r}; expected one of {sorted(PROMPTS)}") from None
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": template.replace("{note}", content)},
    ]


def append_output(content: str, output: str) -> str:
    """Return *content* with the assistant *output* appended below a rule."""
    return f"{content}{OUTPUT_SEPARATOR}{output}"


def run_action(generate: TextGenerator, action: str, content: str) -> str:
    """Ask *generate* to perform *action* and return the new note content."""
    return append_output(content, generate(build_messages(action, content)))
