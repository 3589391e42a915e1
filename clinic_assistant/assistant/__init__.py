"""Intent classification and conversational routing."""

from clinic_assistant.assistant.classifier import (
    IntentClassifier,
    KeywordIntentClassifier,
    LLMIntentClassifier,
    create_classifier_from_settings,
)
from clinic_assistant.assistant.envelope import Reply, ReplyOption, ReplyType
from clinic_assistant.assistant.intents import BRANCHES, ClassifiedIntent, Intent
from clinic_assistant.assistant.router import ConversationalRouter

__all__ = [
    "BRANCHES",
    "ClassifiedIntent",
    "ConversationalRouter",
    "Intent",
    "IntentClassifier",
    "KeywordIntentClassifier",
    "LLMIntentClassifier",
    "Reply",
    "ReplyOption",
    "ReplyType",
    "create_classifier_from_settings",
]
