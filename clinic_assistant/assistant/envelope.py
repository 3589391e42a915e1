"""Uniform reply envelope returned for every chat message."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ReplyType(str, Enum):
    """Tells the client which payload shape ``data`` carries."""

    TEXT = "TEXT"
    DOCTOR_LIST = "DOCTOR_LIST"
    APPOINTMENT_LIST = "APPOINTMENT_LIST"
    MEDICATION_LIST = "MEDICATION_LIST"
    TREATMENT_LIST = "TREATMENT_LIST"


class ReplyOption(BaseModel):
    """A suggested follow-up; ``action`` is sent back as the next message."""

    label: str
    action: str


class Reply(BaseModel):
    text: str
    type: ReplyType = ReplyType.TEXT
    data: Optional[list[dict[str, Any]]] = None
    options: list[ReplyOption] = Field(default_factory=list)

    @classmethod
    def text_only(cls, text: str, options: Optional[list[ReplyOption]] = None) -> "Reply":
        return cls(text=text, type=ReplyType.TEXT, options=list(options or []))


MAIN_MENU = [
    ReplyOption(label="📅 Randevularım", action="Randevularımı listele"),
    ReplyOption(label="👨‍⚕️ Doktor Bul", action="Doktorları göster"),
    ReplyOption(label="📋 Tedavi Planım", action="Tedavi planımı göster"),
]

BOOKING_OPTIONS = [
    ReplyOption(label="📅 Yeni Randevu Al", action="Yeni randevu almak istiyorum"),
]

LOGIN_OPTIONS = [
    ReplyOption(label="🔐 Giriş Yap", action="LOGIN"),
]

BRANCH_LIST_OPTIONS = [
    ReplyOption(label="🏥 Bölümleri Göster", action="Bölümleri listele"),
]

FALLBACK_OPTIONS = [
    ReplyOption(label="📅 Randevularım", action="Randevularımı listele"),
    ReplyOption(label="📞 İletişim", action="İletişim bilgileri"),
]

RETRY_OPTIONS = [
    ReplyOption(label="🔄 Tekrar Dene", action="Merhaba"),
]
