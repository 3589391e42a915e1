"""Intent taxonomy and coercion of raw classifier output."""

import json
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from clinic_assistant.errors import ClassificationMalformed
from clinic_assistant.llm.base import strip_code_fences

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Closed set of purposes a chat message can have."""

    ANALYZE_SYMPTOMS = "ANALYZE_SYMPTOMS"
    FIND_DOCTOR = "FIND_DOCTOR"
    GET_APPOINTMENTS = "GET_APPOINTMENTS"
    GET_MEDICATIONS = "GET_MEDICATIONS"
    GET_TREATMENT_PLAN = "GET_TREATMENT_PLAN"
    LIST_BRANCHES = "LIST_BRANCHES"
    NAVIGATE_TO_APPOINTMENT = "NAVIGATE_TO_APPOINTMENT"
    CHAT = "CHAT"
    UNKNOWN = "UNKNOWN"


# Specializations the assistant may route to. Doctors are stored with these
# exact spellings.
BRANCHES: tuple[str, ...] = (
    "Nöroloji",
    "Dahiliye",
    "Kardiyoloji",
    "Ortopedi",
    "Dermatoloji",
    "KBB",
    "Göz Hastalıkları",
    "Diş Hekimliği",
    "Psikiyatri",
    "Üroloji",
    "Kadın Doğum",
    "Genel Cerrahi",
    "Fizik Tedavi",
    "Beslenme ve Diyet",
    "Çocuk Sağlığı",
    "Estetik Cerrahi",
)


def fold_text(text: str) -> str:
    """Case-insensitive form of Turkish text.

    ``casefold()`` turns "İ" into "i" plus a combining dot; the dot is dropped
    so "PROLOTEPARİ" and "prolotepari" compare equal.
    """
    return text.casefold().replace("\u0307", "")


_BRANCH_LOOKUP = {fold_text(branch): branch for branch in BRANCHES}


class ClassifiedIntent(BaseModel):
    """Validated classifier result handed to the router."""

    intent: Intent
    branch: Optional[str] = None
    reply: str = ""
    degraded: bool = False


def canonical_branch(name: Optional[str]) -> Optional[str]:
    """Return the allow-list spelling of ``name``, or None if it is not a branch."""
    if not name:
        return None
    return _BRANCH_LOOKUP.get(fold_text(name.strip()))


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def decode_classifier_object(raw: str) -> dict[str, Any]:
    """Decode classifier output into a JSON object.

    Raises:
        ClassificationMalformed: If the text is not a JSON object
    """
    text = strip_code_fences(raw or "")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ClassificationMalformed(f"Classifier output is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationMalformed(f"Classifier output is a {type(data).__name__}, expected an object")
    return data


def parse_classifier_output(raw: str) -> ClassifiedIntent:
    """Coerce untyped classifier output into a ``ClassifiedIntent``.

    Unparsable text becomes a CHAT with an empty reply, so the router
    answers with its default text instead of the model output. An intent
    name outside the enumeration becomes UNKNOWN. Both are flagged as
    degraded.
    """
    try:
        data = decode_classifier_object(raw)
    except ClassificationMalformed as e:
        logger.warning(f"{e}; treating it as plain chat")
        return ClassifiedIntent(intent=Intent.CHAT, reply="", degraded=True)

    reply = _as_text(data.get("reply"))
    branch = _as_text(data.get("branch")).strip() or None

    raw_intent = _as_text(data.get("intent")).strip().upper()
    try:
        intent = Intent(raw_intent)
    except ValueError:
        logger.warning(f"Unknown intent from classifier: {raw_intent!r}")
        return ClassifiedIntent(intent=Intent.UNKNOWN, branch=branch, reply=reply, degraded=True)

    return ClassifiedIntent(intent=intent, branch=branch, reply=reply)
