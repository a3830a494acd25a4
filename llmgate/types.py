from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Literal, Mapping, Optional, TypedDict, get_args

# =============================================================================
# Type Definitions
# =============================================================================

Role = Literal["system", "user", "assistant"]

ROLES = frozenset(get_args(Role))


class MessageDict(TypedDict):
    """
    Plain mapping form of a chat message, as accepted by the gateway
    and as sent on the wire to OpenAI-compatible backends.
    """
    role: Role
    content: str


@dataclass(frozen=True)
class ChatMessage:
    """
    One role-tagged message of a conversation.

    Roles:
    - "system": System prompt / instructions
    - "user": User message
    - "assistant": Model response
    """
    role: Role
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(
                f"Invalid message role '{self.role}'. Use one of: {', '.join(sorted(ROLES))}"
            )
        if not isinstance(self.content, str):
            raise ValueError("Message content must be a string")

    def to_dict(self) -> MessageDict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ProviderConfig:
    """
    Static settings for one backend. Built once at startup and shared
    read-only by every call.
    """
    name: str
    endpoint: Optional[str]
    credential: Optional[str]
    default_model: str
    supports_streaming: bool = True
    label: Optional[str] = None  # display prefix for model labels, e.g. "azure-ai"
    default_headers: Mapping[str, str] = field(default_factory=dict)
    default_query: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None

    def __post_init__(self):
        # read-only copies of the caller's mappings
        object.__setattr__(self, "default_headers", MappingProxyType(dict(self.default_headers)))
        object.__setattr__(self, "default_query", MappingProxyType(dict(self.default_query)))

    def __repr__(self) -> str:
        # keep credentials out of logs and tracebacks
        return (
            f"ProviderConfig(name={self.name!r}, endpoint={self.endpoint!r}, "
            f"default_model={self.default_model!r}, supports_streaming={self.supports_streaming})"
        )


@dataclass(frozen=True)
class CompletionResult:
    """
    The full text of one logical call and the label of whoever served it.
    """
    content: str
    model_label: str
    provider: Optional[str] = None
    fallback: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "content": self.content,
            "model_label": self.model_label,
            "provider": self.provider,
            "fallback": self.fallback,
        }
