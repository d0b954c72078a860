"""
Prompt builders for AI Playground.

Turns a thread's message history into whatever each model family expects:
a list of chat messages, a single templated string, or Cohere chat history.
"""

from typing import Any, Iterable

from .types import AI_SENDER_ID, SELF_ID, Message

ChatMessages = list[dict[str, str]]


def history_to_messages(messages: Iterable[Message]) -> ChatMessages:
    """Keep only user and assistant messages and tag them with roles."""
    result: ChatMessages = []
    for msg in messages:
        if msg.sender_id == SELF_ID:
            result.append({"role": "user", "content": msg.text})
        elif msg.sender_id == AI_SENDER_ID:
            result.append({"role": "assistant", "content": msg.text})
    return result


def build_openassistant_prompt(messages: ChatMessages) -> str:
    """Build an OpenAssistant (Pythia) prompt."""
    parts = []
    for msg in messages:
        if msg["role"] == "user":
            parts.append(f"<|prompter|>{msg['content']}<|endoftext|>")
        elif msg["role"] == "assistant":
            parts.append(f"<|assistant|>{msg['content']}<|endoftext|>")
        else:
            raise ValueError(f"OpenAssistant prompts do not support role {msg['role']!r}")
    return "".join(parts) + "<|assistant|>"


def build_starchat_prompt(messages: ChatMessages) -> str:
    """Build a StarChat beta prompt."""
    tags = {"system": "<|system|>", "user": "<|user|>", "assistant": "<|assistant|>"}
    parts = []
    for msg in messages:
        tag = tags.get(msg["role"])
        if tag is None:
            raise ValueError(f"StarChat prompts do not support role {msg['role']!r}")
        parts.append(f"{tag}\n{msg['content']}<|end|>\n")
    return "".join(parts) + "<|assistant|>"


def build_llama2_prompt(messages: ChatMessages) -> str:
    """Build a Llama 2 chat prompt.

    A system message is only allowed in first position.
    """
    parts = []
    for index, msg in enumerate(messages):
        role = msg["role"]
        if role == "user":
            parts.append(msg["content"].strip())
        elif role == "assistant":
            parts.append(f" [/INST] {msg['content']}</s><s>[INST] ")
        elif role == "system" and index == 0:
            parts.append(f"<<SYS>>\n{msg['content']}\n<</SYS>>\n\n")
        else:
            raise ValueError(f"Llama 2 prompts do not support role {role!r} here")
    return "<s>[INST] " + "".join(parts) + " [/INST]"


def build_cohere_chat_history(messages: ChatMessages) -> list[dict[str, Any]]:
    """Map chat messages onto Cohere's USER/CHATBOT history."""
    return [
        {
            "message": msg["content"],
            "role": "USER" if msg["role"] == "user" else "CHATBOT",
        }
        for msg in messages
    ]


def build_anthropic_prompt(messages: ChatMessages) -> str:
    """Build a Human/Assistant prompt for the legacy Anthropic completions API."""
    parts = []
    for msg in messages:
        speaker = "Human" if msg["role"] == "user" else "Assistant"
        parts.append(f"\n\n{speaker}: {msg['content']}")
    return "".join(parts) + "\n\nAssistant:"


def map_messages_to_prompt(messages: Iterable[Message], prompt_type: str = "default") -> Any:
    """Build the prompt for a thread's history.

    Args:
        messages: Thread messages, oldest first
        prompt_type: The model's prompt type from the catalog

    Returns:
        A prompt string, chat message list or Cohere history
    """
    chat = history_to_messages(messages)

    if prompt_type == "openassistant":
        return build_openassistant_prompt(chat)
    if prompt_type == "llama2":
        return build_llama2_prompt(chat)
    if prompt_type == "starchat":
        return build_starchat_prompt(chat)
    if prompt_type == "cohere":
        return build_cohere_chat_history(chat)
    if prompt_type == "anthropic":
        return build_anthropic_prompt(chat)
    return chat


def map_text_to_prompt(text: str, model_id: str) -> str:
    """Build a single-turn completion prompt."""
    if model_id == "OpenAssistant/oasst-sft-4-pythia-12b-epoch-3.5":
        return f"<|prompter|>{text}<|endoftext|><|assistant|>"
    return text
