"""Prompt construction and response cleanup for the documentation transformer.

The pipeline treats the transformation as opaque text -> text; this module
is where the HTTP transformer decides what to ask the model for. Two prompts
are provided: one that documents a single source file in place, and one that
summarizes a fragment of the whole project for the README.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from src.config import AI_GENERATED_MARKER

PromptBuilder = Callable[[str], list[dict[str, Any]]]

_FENCE_PATTERN = re.compile(
    r"^\s*```(?:[a-zA-Z0-9_+-]+\s*\n)?(.*?)\n?```\s*$", re.DOTALL | re.IGNORECASE
)

DOCUMENTATION_SYSTEM_PROMPT = (
    "You are an AI assistant that specializes in Scala programming. "
    "Your task is to generate concise and accurate ScalaDoc for the provided "
    "Scala code and add comments."
)

DOCUMENTATION_USER_TEMPLATE = """You should not touch the code itself, only add comments and edit the existing ScalaDoc.
Please do not erase brackets, parentheses, or curly braces; make sure they are properly closed.
Important: Please format the response as plain code without any markdown formatting.
You also need to add the comment "{marker}" at the top of the file.

Here is the code: {content}"""

README_SYSTEM_PROMPT = (
    "You are an AI assistant specializing in Scala programming. Your task is "
    "to create a high-quality README summarizing the entire project described "
    "by the provided code."
)

README_USER_TEMPLATE = """Write the README section for the following part of the project.
Describe its features, key components and usage. Answer in Markdown.

{content}"""


def build_documentation_prompt(content: str) -> list[dict[str, Any]]:
    """Return chat messages asking the model to document ``content`` in place."""
    return [
        {"role": "system", "content": DOCUMENTATION_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": DOCUMENTATION_USER_TEMPLATE.format(
                marker=AI_GENERATED_MARKER, content=content
            ),
        },
    ]


def build_readme_prompt(content: str) -> list[dict[str, Any]]:
    """Return chat messages asking for a README section describing ``content``."""
    return [
        {"role": "system", "content": README_SYSTEM_PROMPT},
        {"role": "user", "content": README_USER_TEMPLATE.format(content=content)},
    ]


def clean_ai_response(content: str) -> str:
    """Clean common AI response artefacts from the returned text.

    This removes fenced code blocks (``` ... ```), optional leading
    language markers such as ```scala and trailing fence markers.

    Parameters
    ----------
    content : str
        Raw text returned by the AI service.

    Returns
    -------
    str
        The text without surrounding fences. Unfenced text is returned
        unchanged; unwrapped text ends with a single newline.

    Raises
    ------
    TypeError
        If ``content`` is not a string.

    Examples
    --------
    >>> clean_ai_response("```scala\\nobject A\\n```")
    'object A\\n'
    >>> clean_ai_response("object A")
    'object A'
    """
    if not isinstance(content, str):
        raise TypeError("content must be a string")
    match = _FENCE_PATTERN.match(content)
    if match:
        return match.group(1).strip("\n") + "\n"
    stripped = content.strip()
    if stripped.startswith("```"):
        first_newline = stripped.find("\n")
        stripped = stripped[first_newline + 1 :] if first_newline != -1 else ""
    if stripped.endswith("```"):
        stripped = stripped[: -len("```")].rstrip()
    if stripped == content.strip():
        return content
    return stripped + "\n"


def split_fragments(text: str, max_chars: int, separator: str) -> list[str]:
    r"""Split ``text`` into fragments of at most ``max_chars`` characters.

    Splits prefer ``separator`` boundaries (file boundaries in a combined
    project dump); a single part longer than ``max_chars`` is cut into
    fixed-size slices. Joining the fragments with ``""`` restores ``text``.

    Examples
    --------
    >>> split_fragments("aa|bb|cc", 5, "|")
    ['aa|bb', '|cc']
    >>> "".join(split_fragments("abcdefg", 3, "|"))
    'abcdefg'
    """
    if max_chars < 1:
        raise ValueError("max_chars must be positive")
    if len(text) <= max_chars:
        return [text] if text else []
    parts = text.split(separator)
    pieces = [parts[0]] + [separator + part for part in parts[1:]]
    fragments: list[str] = []
    current = ""
    for piece in pieces:
        if len(current) + len(piece) <= max_chars:
            current += piece
            continue
        if current:
            fragments.append(current)
        while len(piece) > max_chars:
            fragments.append(piece[:max_chars])
            piece = piece[max_chars:]
        current = piece
    if current:
        fragments.append(current)
    return fragments


__all__ = [
    "PromptBuilder",
    "build_documentation_prompt",
    "build_readme_prompt",
    "clean_ai_response",
    "split_fragments",
]
