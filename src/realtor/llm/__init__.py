"""Completion layer — conversation model and pluggable completion services."""

from realtor.llm.errors import CompletionError, MissingCredentialError
from realtor.llm.models import (
    Candidate,
    Conversation,
    ConversationError,
    FunctionCall,
    FunctionCallPart,
    FunctionResponse,
    FunctionResponsePart,
    Message,
    Part,
    TextPart,
)
from realtor.llm.service import CompletionService, create_completion_service

__all__ = [
    "Candidate",
    "CompletionError",
    "CompletionService",
    "Conversation",
    "ConversationError",
    "FunctionCall",
    "FunctionCallPart",
    "FunctionResponse",
    "FunctionResponsePart",
    "Message",
    "MissingCredentialError",
    "Part",
    "TextPart",
    "create_completion_service",
]
