from typing import Iterable, List, Mapping, Optional, Tuple, Union

from .types import ChatMessage, MessageDict, Role

FALLBACK_MARKER = "(fallback)"

# =============================================================================
# Message Helpers
# =============================================================================

def create_message(role: Role, content: str) -> ChatMessage:
    """
    Create a standardized ChatMessage.

    Args:
        role (str): The role of the message sender ('system', 'user', 'assistant').
        content (str): The text of the message.

    Returns:
        ChatMessage: An immutable message.

    Raises:
        ValueError: If the role is not one of the supported roles.
    """
    return ChatMessage(role=role, content=content)


def normalize_messages(
    messages: Iterable[Union[ChatMessage, Mapping[str, str]]],
) -> Tuple[ChatMessage, ...]:
    """
    Convert a conversation into an immutable tuple of ChatMessage.

    Accepts ChatMessage instances as-is and plain mappings with 'role' and
    'content' keys. The input sequence is only read, never modified.

    Args:
        messages: The conversation, oldest message first.

    Returns:
        Tuple[ChatMessage, ...]: The normalized conversation, same order.

    Raises:
        ValueError: If the conversation is empty, or an item has an unknown
            role or is missing a field.
    """
    normalized: List[ChatMessage] = []
    for msg in messages:
        if isinstance(msg, ChatMessage):
            normalized.append(msg)
            continue
        try:
            role = msg["role"]
            content = msg["content"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed message: {msg!r}") from e
        normalized.append(ChatMessage(role=role, content=content))
    if not normalized:
        raise ValueError("Conversation must contain at least one message")
    return tuple(normalized)


def to_wire_messages(messages: Iterable[ChatMessage]) -> List[MessageDict]:
    """Build the OpenAI-style message list sent to a backend."""
    return [msg.to_dict() for msg in messages]


# =============================================================================
# Label Helpers
# =============================================================================

def format_model_label(model: str, label: Optional[str] = None) -> str:
    """
    Build the label that tells the caller who served a request.

    Examples:
        >>> format_model_label("openai/gpt-4o")
        'openai/gpt-4o'
        >>> format_model_label("gpt-4o", "azure-ai")
        'azure-ai (gpt-4o)'
    """
    if label:
        return f"{label} ({model})"
    return model


def fallback_label(model_label: str) -> str:
    """Annotate a model label to show the fallback served the request."""
    return f"{model_label} {FALLBACK_MARKER}"


def is_fallback_label(model_label: str) -> bool:
    return model_label.endswith(FALLBACK_MARKER)
