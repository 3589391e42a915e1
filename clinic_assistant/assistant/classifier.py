"""Intent classifiers.

Both implementations answer the same question, "what does this message
want?", and return a ``ClassifiedIntent``. Which one serves chat traffic is
chosen by ``Settings.classifier_backend``.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from clinic_assistant.assistant.intents import (
    BRANCHES,
    ClassifiedIntent,
    Intent,
    fold_text,
    parse_classifier_output,
)
from clinic_assistant.config import Settings, get_settings
from clinic_assistant.llm import (
    LLMError,
    LLMRouter,
    Message,
    create_router_from_settings,
)

logger = logging.getLogger(__name__)


class IntentClassifier(ABC):
    """Maps free text to an intent plus an optional branch."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def classify(self, text: str, branches: Sequence[str] = BRANCHES) -> ClassifiedIntent:
        """Classify one user message. Never raises for bad model output."""
        pass


# Symptom keyword -> branch. Longer keywords are tried first so that
# "göğüs ağrısı" wins over a shorter keyword inside it.
SYMPTOM_MAP: dict[str, str] = {
    # Nöroloji
    "baş ağrısı": "Nöroloji",
    "başım ağrıyor": "Nöroloji",
    "baş dönmesi": "Nöroloji",
    "migren": "Nöroloji",
    "unutkanlık": "Nöroloji",
    "uyuşma": "Nöroloji",
    "karıncalanma": "Nöroloji",
    "titreme": "Nöroloji",
    "bayılma": "Nöroloji",
    "denge kaybı": "Nöroloji",
    "felç": "Nöroloji",
    "nöbet": "Nöroloji",
    "alzheimer": "Nöroloji",
    # Dahiliye
    "karın ağrısı": "Dahiliye",
    "mide": "Dahiliye",
    "bulantı": "Dahiliye",
    "bulanıyor": "Dahiliye",
    "kusma": "Dahiliye",
    "ishal": "Dahiliye",
    "kabızlık": "Dahiliye",
    "ateş": "Dahiliye",
    "terleme": "Dahiliye",
    "halsizlik": "Dahiliye",
    "yorgunluk": "Dahiliye",
    "tansiyon": "Dahiliye",
    "şeker": "Dahiliye",
    "diyabet": "Dahiliye",
    "grip": "Dahiliye",
    "nezle": "Dahiliye",
    "soğuk algınlığı": "Dahiliye",
    "öksürük": "Dahiliye",
    "kansızlık": "Dahiliye",
    "anemi": "Dahiliye",
    "kolesterol": "Dahiliye",
    "tiroid": "Dahiliye",
    "guatr": "Dahiliye",
    # Kardiyoloji
    "göğüs ağrısı": "Kardiyoloji",
    "kalp": "Kardiyoloji",
    "çarpıntı": "Kardiyoloji",
    "sıkışma": "Kardiyoloji",
    "nefes darlığı": "Kardiyoloji",
    "hipertansiyon": "Kardiyoloji",
    "damar tıkanıklığı": "Kardiyoloji",
    # Ortopedi
    "kırık": "Ortopedi",
    "çıkık": "Ortopedi",
    "ezilme": "Ortopedi",
    "burkulma": "Ortopedi",
    "eklem ağrısı": "Ortopedi",
    "diz ağrısı": "Ortopedi",
    "bel ağrısı": "Ortopedi",
    "boyun ağrısı": "Ortopedi",
    "sırt ağrısı": "Ortopedi",
    "menisküs": "Ortopedi",
    "romatizma": "Ortopedi",
    "kas ağrısı": "Ortopedi",
    "kramp": "Ortopedi",
    # Dermatoloji
    "cilt": "Dermatoloji",
    "kaşıntı": "Dermatoloji",
    "kızarıklık": "Dermatoloji",
    "döküntü": "Dermatoloji",
    "sivilce": "Dermatoloji",
    "akne": "Dermatoloji",
    "egzama": "Dermatoloji",
    "mantar": "Dermatoloji",
    "saç dökülmesi": "Dermatoloji",
    "tırnak": "Dermatoloji",
    "sedef": "Dermatoloji",
    # KBB
    "boğaz ağrısı": "KBB",
    "yutkunma": "KBB",
    "kulak ağrısı": "KBB",
    "işitme": "KBB",
    "çınlama": "KBB",
    "burun tıkanıklığı": "KBB",
    "geniz akıntısı": "KBB",
    "horlama": "KBB",
    "vertigo": "KBB",
    "bademcik": "KBB",
    # Göz Hastalıkları
    "göz": "Göz Hastalıkları",
    "görme": "Göz Hastalıkları",
    "bulanık": "Göz Hastalıkları",
    "arpacık": "Göz Hastalıkları",
    "miyop": "Göz Hastalıkları",
    "astigmat": "Göz Hastalıkları",
    "katarakt": "Göz Hastalıkları",
    # Diş Hekimliği
    "diş": "Diş Hekimliği",
    "diş eti": "Diş Hekimliği",
    "çürük": "Diş Hekimliği",
    "dolgu": "Diş Hekimliği",
    "kanal tedavisi": "Diş Hekimliği",
    "yirmilik": "Diş Hekimliği",
    "implant": "Diş Hekimliği",
    # Psikiyatri
    "depresyon": "Psikiyatri",
    "stres": "Psikiyatri",
    "kaygı": "Psikiyatri",
    "uyku bozukluğu": "Psikiyatri",
    "panik atak": "Psikiyatri",
    "mutsuzluk": "Psikiyatri",
    "anksiyete": "Psikiyatri",
    # Üroloji
    "idrar": "Üroloji",
    "böbrek taşı": "Üroloji",
    "prostat": "Üroloji",
    # Kadın Doğum
    "adet": "Kadın Doğum",
    "regl": "Kadın Doğum",
    "gebelik": "Kadın Doğum",
    "hamile": "Kadın Doğum",
    "yumurtalık": "Kadın Doğum",
    # Genel Cerrahi
    "apandisit": "Genel Cerrahi",
    "fıtık": "Genel Cerrahi",
    "basur": "Genel Cerrahi",
    "hemoroid": "Genel Cerrahi",
    "safra kesesi": "Genel Cerrahi",
}

APPOINTMENT_WORDS = ("randevu", "ne zaman")
NEW_BOOKING_WORDS = ("almak", "alabilir", "yeni", "oluştur", "istiyorum")
MEDICATION_WORDS = ("reçete", "ilaç", "eczane")
TREATMENT_WORDS = ("tedavi plan", "tedavilerim", "tedavi program", "protokol")
DOCTOR_WORDS = ("doktor", "hekim", "uzman")
BRANCH_LIST_WORDS = ("bölüm", "branş", "poliklinik")
CONTACT_WORDS = ("iletişim", "adres", "telefon", "konum", "nerede")
GREETING_WORDS = ("merhaba", "selam", "günaydın", "iyi günler", "nasılsın")

GREETING_REPLY = (
    "Merhaba! Ben Klinik Asistanı. Şikayetinizi yazabilir (Örn: \"Başım ağrıyor\") "
    "veya randevularınızı sorabilirsiniz."
)
CONTACT_REPLY = (
    "📍 Klinik Genel Merkez\n"
    "Adres: İstanbul/Şişli Merkez Mah. Teknoloji Cad. No:1\n"
    "📞 Telefon: 444 0 444\n"
    "⏰ Çalışma Saatleri: 09:00 - 17:00"
)
FALLBACK_REPLY = (
    "Bunu tam anlayamadım. Şikayetinizi biraz daha açık yazar mısınız? "
    "Hangi bölüme gitmeniz gerektiğini bulabilirim. (Örn: \"Midem bulanıyor\")"
)


def _word_start_pattern(phrase: str) -> re.Pattern:
    # Turkish adds suffixes, so "midem" must still match "mide"; only the
    # start of the word is anchored.
    return re.compile(r"(?<!\w)" + re.escape(fold_text(phrase)))


class KeywordIntentClassifier(IntentClassifier):
    """Rule-based classifier over fixed Turkish keyword lists."""

    def __init__(self):
        self._symptoms = [
            (keyword, branch, _word_start_pattern(keyword))
            for keyword, branch in sorted(SYMPTOM_MAP.items(), key=lambda kv: len(kv[0]), reverse=True)
        ]
        self._patterns: dict[str, re.Pattern] = {}

    @property
    def name(self) -> str:
        return "keyword"

    def _has_any(self, text: str, words: Sequence[str]) -> bool:
        for word in words:
            pattern = self._patterns.get(word)
            if pattern is None:
                pattern = self._patterns[word] = _word_start_pattern(word)
            if pattern.search(text):
                return True
        return False

    def _mentioned_branch(self, text: str, branches: Sequence[str]) -> Optional[str]:
        for branch in sorted(branches, key=len, reverse=True):
            if self._has_any(text, (branch,)):
                return branch
        return None

    async def classify(self, text: str, branches: Sequence[str] = BRANCHES) -> ClassifiedIntent:
        folded = fold_text(text or "")

        if self._has_any(folded, APPOINTMENT_WORDS):
            if self._has_any(folded, NEW_BOOKING_WORDS):
                return ClassifiedIntent(
                    intent=Intent.NAVIGATE_TO_APPOINTMENT,
                    reply="Yeni randevu oluşturmak için klinik seçimi sayfasına yönlendiriyorum.",
                )
            return ClassifiedIntent(
                intent=Intent.GET_APPOINTMENTS, reply="Randevularınızı kontrol ediyorum..."
            )

        if self._has_any(folded, MEDICATION_WORDS):
            return ClassifiedIntent(intent=Intent.GET_MEDICATIONS, reply="İlaçlarınız:")

        if self._has_any(folded, TREATMENT_WORDS):
            return ClassifiedIntent(intent=Intent.GET_TREATMENT_PLAN, reply="Tedavi planınız:")

        for keyword, branch, pattern in self._symptoms:
            if branch in branches and pattern.search(folded):
                return ClassifiedIntent(
                    intent=Intent.ANALYZE_SYMPTOMS,
                    branch=branch,
                    reply=f'"{keyword}" şikayetiniz için {branch} bölümü uygun görünüyor.',
                )

        branch = self._mentioned_branch(folded, branches)
        if branch is not None or self._has_any(folded, DOCTOR_WORDS):
            reply = f"{branch} doktorlarımız:" if branch else "Hangi bölümden doktor arıyorsunuz?"
            return ClassifiedIntent(intent=Intent.FIND_DOCTOR, branch=branch, reply=reply)

        if self._has_any(folded, BRANCH_LIST_WORDS):
            return ClassifiedIntent(intent=Intent.LIST_BRANCHES, reply="Bölümlerimiz:")

        if self._has_any(folded, CONTACT_WORDS):
            return ClassifiedIntent(intent=Intent.CHAT, reply=CONTACT_REPLY)

        if self._has_any(folded, GREETING_WORDS):
            return ClassifiedIntent(intent=Intent.CHAT, reply=GREETING_REPLY)

        return ClassifiedIntent(intent=Intent.UNKNOWN, reply=FALLBACK_REPLY)


SYSTEM_PROMPT = """Sen bir Klinik Asistanısın. Görevin hastanın mesajını anlamak ve SADECE JSON formatında yanıt üretmek.

GEÇERLİ NİYETLER (intent):
- ANALYZE_SYMPTOMS: Hasta bir şikayet veya belirti anlatıyor. "branch" alanına uygun bölümü yaz.
- FIND_DOCTOR: Hasta belirli bir bölümden doktor arıyor. Bölüm belirtilmemişse "branch" null olsun.
- GET_APPOINTMENTS: Hasta mevcut randevularını soruyor.
- GET_MEDICATIONS: Hasta ilaçlarını veya reçetelerini soruyor.
- GET_TREATMENT_PLAN: Hasta tedavi planını soruyor.
- LIST_BRANCHES: Hasta hangi bölümler olduğunu soruyor.
- NAVIGATE_TO_APPOINTMENT: Hasta yeni randevu almak istiyor.
- CHAT: Selamlaşma, genel soru veya sohbet.

GEÇERLİ BÖLÜMLER (branch yalnızca bunlardan biri olabilir):
{branches}

BRANŞ EŞLEŞTİRMELERİ:
- Baş ağrısı, Migren, İnme -> Nöroloji
- Kalp, Çarpıntı, Göğüs ağrısı -> Kardiyoloji
- Karın ağrısı, Grip, Tansiyon -> Dahiliye
- Diş, İmplant -> Diş Hekimliği
- Kemik, Kırık, Bel ağrısı -> Ortopedi
- Göz -> Göz Hastalıkları
- Cilt -> Dermatoloji

KURALLAR:
- SADECE JSON döndür. Markdown (backtick) kullanma.
- "reply" hastaya gösterilecek kısa ve nazik bir Türkçe cümle olsun.

ÇIKTI FORMATI:
{{"intent": "ANALYZE_SYMPTOMS", "branch": "Nöroloji", "reply": "Baş ağrısı şikayetiniz için Nöroloji bölümüne görünmelisiniz."}}
"""

SAFE_REPLY = "Şu an isteğinizi işleyemiyorum. Lütfen biraz sonra tekrar deneyin."


class LLMIntentClassifier(IntentClassifier):
    """Classifier backed by a generative model through ``LLMRouter``."""

    def __init__(self, llm: LLMRouter, temperature: float = 0.0, max_tokens: int = 512):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def name(self) -> str:
        return "llm"

    def build_messages(self, text: str, branches: Sequence[str]) -> list[Message]:
        system = SYSTEM_PROMPT.format(branches="\n".join(f"- {b}" for b in branches))
        return [
            Message.system(system),
            Message.user(f'Kullanıcı Mesajı: "{text}"'),
        ]

    async def classify(self, text: str, branches: Sequence[str] = BRANCHES) -> ClassifiedIntent:
        messages = self.build_messages(text, branches)
        try:
            response = await self.llm.complete(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                json_output=True,
            )
        except LLMError as e:
            logger.error(f"Intent classification failed: {e}")
            return ClassifiedIntent(intent=Intent.UNKNOWN, reply=SAFE_REPLY, degraded=True)

        return parse_classifier_output(response.content)


def create_classifier_from_settings(
    settings: Optional[Settings] = None,
    llm: Optional[LLMRouter] = None,
) -> IntentClassifier:
    """Build the classifier selected by ``classifier_backend``."""
    settings = settings or get_settings()
    if settings.classifier_backend == "llm":
        logger.info("Using LLM intent classifier")
        return LLMIntentClassifier(llm or create_router_from_settings())

    logger.info("Using keyword intent classifier")
    return KeywordIntentClassifier()
