from .gateway import ChatGateway
from .aggregator import StreamAggregator
from .types import ChatMessage, CompletionResult, ProviderConfig, Role
from .errors import GatewayError, GatewayErrorKind, LLMGateError, ProviderError, ProviderErrorKind
from .config import GatewaySettings, build_gateway, load_settings
from .store import ChatRecord, ChatStore, InMemoryChatStore, MessageRecord
from .utils import create_message
from .rich_llm_printer import RichPrinter, RichStreamPrinter

__all__ = [
    "ChatGateway",
    "StreamAggregator",
    "ChatMessage",
    "CompletionResult",
    "ProviderConfig",
    "Role",
    "GatewayError",
    "GatewayErrorKind",
    "LLMGateError",
    "ProviderError",
    "ProviderErrorKind",
    "GatewaySettings",
    "build_gateway",
    "load_settings",
    "ChatRecord",
    "ChatStore",
    "InMemoryChatStore",
    "MessageRecord",
    "create_message",
    "RichPrinter",
    "RichStreamPrinter",
]
