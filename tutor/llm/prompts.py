from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Union

from ..enums import Difficulty, Role
from ..schemas import ChatMessage

DIFFICULTY_PROMPTS: Dict[str, str] = {
    Difficulty.BEGINNER.value: (
        "The user is a beginner in {target}. Use simple vocabulary and basic grammar structures. "
        "Explain concepts clearly in {native} when necessary, but encourage usage of {target}. "
        "Focus on basic greetings, numbers, and common phrases."
    ),
    Difficulty.INTERMEDIATE.value: (
        "The user is at an intermediate level in {target}. You can use more complex sentences and grammar. "
        "Explanations in {native} should be minimal, primarily for complex nuances. "
        "Focus on conversational flow and expanding vocabulary."
    ),
    Difficulty.ADVANCED.value: (
        "The user is an advanced learner of {target}. Converse almost exclusively in {target}. "
        "Use sophisticated vocabulary, idioms, and complex grammatical structures. "
        "Only use {native} for very subtle linguistic distinctions or if explicitly asked."
    ),
}

FALLBACK_DIFFICULTY_PROMPT = "Adjust your teaching to the user's level."

SYSTEM_TEMPLATE = """You are an expert language teacher. Your goal is to teach the user {target}. The user is fluent in {native}.

{difficulty_instruction}

Be patient, encouraging, and helpful. Correct mistakes gently by providing the correct form and briefly explaining why, if appropriate for their level.
Engage in a conversation to help them practice. Ask questions to prompt them to use the language.

If the user asks a question in {native}, answer it but try to bridge it back to {target}."""

REFERENCE_START = "--- REFERENCE MATERIAL ---"
REFERENCE_END = "--- END REFERENCE MATERIAL ---"

REFERENCE_TEMPLATE = """

Here is the official reference material for {target}. Use this strictly for vocabulary and grammar rules:

{start}
{text}
{end}"""


def difficulty_instruction(native_language: str, target_language: str, difficulty: Optional[str]) -> str:
    """Pick the tier instruction; unknown or missing tiers get the generic one."""
    template = DIFFICULTY_PROMPTS.get(difficulty or "")
    if template is None:
        return FALLBACK_DIFFICULTY_PROMPT
    return template.format(native=native_language, target=target_language)


def build_system_prompt(
    native_language: Optional[str],
    target_language: Optional[str],
    difficulty: Optional[str],
    reference_text: Optional[str] = None,
) -> str:
    native = native_language or ""
    target = target_language or ""
    prompt = SYSTEM_TEMPLATE.format(
        native=native,
        target=target,
        difficulty_instruction=difficulty_instruction(native, target, difficulty),
    )
    if reference_text:
        prompt += REFERENCE_TEMPLATE.format(
            target=target,
            start=REFERENCE_START,
            text=reference_text,
            end=REFERENCE_END,
        )
    return prompt


def build_conversation(
    system_prompt: str,
    messages: Iterable[Union[ChatMessage, Dict[str, str]]],
) -> List[Dict[str, str]]:
    """Prepend the system message to the caller's messages, keeping their order."""
    conversation: List[Dict[str, str]] = [{"role": Role.SYSTEM.value, "content": system_prompt}]
    for msg in messages:
        if isinstance(msg, ChatMessage):
            conversation.append({"role": msg.role, "content": msg.content})
        else:
            conversation.append({"role": msg["role"], "content": msg["content"]})
    return conversation
