"""Domain entities and port interfaces for the agent."""

from .conversation import Conversation
from .entities import (
    ErrorType,
    Message,
    MessageRole,
    ModelResponse,
    ToolCall,
    ToolDefinition,
)
from .ports import ILLMProvider, IMCPClient

__all__ = [
    # Entities
    "Conversation",
    "ErrorType",
    "Message",
    "MessageRole",
    "ModelResponse",
    "ToolCall",
    "ToolDefinition",
    # Ports
    "ILLMProvider",
    "IMCPClient",
]
