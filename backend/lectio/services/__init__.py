"""Chat pipeline services."""

from lectio.services.annotator import annotate, format_content, get_citable_sources
from lectio.services.background import BackgroundTaskSet
from lectio.services.chat_service import ChatService
from lectio.services.context import ContextAggregator, UserContext
from lectio.services.gateway import AnthropicGateway, Completion, ModelGateway
from lectio.services.insights import extract_insights, save_insights
from lectio.services.prompts import compose_system_prompt

__all__ = [
    "AnthropicGateway",
    "BackgroundTaskSet",
    "ChatService",
    "Completion",
    "ContextAggregator",
    "ModelGateway",
    "UserContext",
    "annotate",
    "compose_system_prompt",
    "extract_insights",
    "format_content",
    "get_citable_sources",
    "save_insights",
]
