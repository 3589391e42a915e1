"""Tests for the keyword and LLM intent classifiers."""

import pytest

from clinic_assistant.assistant.classifier import (
    SAFE_REPLY,
    KeywordIntentClassifier,
    LLMIntentClassifier,
    create_classifier_from_settings,
)
from clinic_assistant.assistant.intents import BRANCHES, Intent
from clinic_assistant.config import Settings
from clinic_assistant.llm import LLMConnectionError, LLMResponse, MessageRole


# ---------------------------------------------------------------------------
# Keyword classifier
# ---------------------------------------------------------------------------

class TestKeywordIntentClassifier:
    """Tests for KeywordIntentClassifier."""

    @pytest.fixture
    def classifier(self):
        return KeywordIntentClassifier()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text,branch",
        [
            ("Başım ağrıyor", "Nöroloji"),
            ("Midem bulanıyor", "Dahiliye"),
            ("Göğüs ağrısı var", "Kardiyoloji"),
            ("Dizimde kırık olabilir", "Ortopedi"),
            ("Cildimde kaşıntı var", "Dermatoloji"),
        ],
    )
    async def test_symptoms(self, classifier, text, branch):
        result = await classifier.classify(text)
        assert result.intent == Intent.ANALYZE_SYMPTOMS
        assert result.branch == branch

    @pytest.mark.asyncio
    async def test_longest_symptom_wins(self, classifier):
        """"göğüs ağrısı" is preferred over any shorter keyword."""
        result = await classifier.classify("göğüs ağrısı ve halsizlik")
        assert result.branch == "Kardiyoloji"
        assert "göğüs ağrısı" in result.reply

    @pytest.mark.asyncio
    async def test_keyword_must_start_a_word(self, classifier):
        """A keyword buried inside a longer word does not count."""
        result = await classifier.classify("ziyadetiyle teşekkürler")
        assert result.intent != Intent.ANALYZE_SYMPTOMS

    @pytest.mark.asyncio
    async def test_appointments(self, classifier):
        result = await classifier.classify("Randevularım ne zaman?")
        assert result.intent == Intent.GET_APPOINTMENTS

    @pytest.mark.asyncio
    async def test_new_booking(self, classifier):
        result = await classifier.classify("Yeni randevu almak istiyorum")
        assert result.intent == Intent.NAVIGATE_TO_APPOINTMENT

    @pytest.mark.asyncio
    async def test_medications_with_dotted_capital(self, classifier):
        result = await classifier.classify("İLAÇLARIM NELER")
        assert result.intent == Intent.GET_MEDICATIONS

    @pytest.mark.asyncio
    async def test_treatment_plan(self, classifier):
        result = await classifier.classify("Tedavi planımı göster")
        assert result.intent == Intent.GET_TREATMENT_PLAN

    @pytest.mark.asyncio
    async def test_branch_mention_finds_doctor(self, classifier):
        result = await classifier.classify("Kardiyoloji doktorları")
        assert result.intent == Intent.FIND_DOCTOR
        assert result.branch == "Kardiyoloji"

    @pytest.mark.asyncio
    async def test_doctor_without_branch(self, classifier):
        result = await classifier.classify("Doktorları göster")
        assert result.intent == Intent.FIND_DOCTOR
        assert result.branch is None

    @pytest.mark.asyncio
    async def test_list_branches(self, classifier):
        result = await classifier.classify("Bölümleri listele")
        assert result.intent == Intent.LIST_BRANCHES

    @pytest.mark.asyncio
    async def test_greeting(self, classifier):
        result = await classifier.classify("Merhaba")
        assert result.intent == Intent.CHAT
        assert result.reply.startswith("Merhaba")

    @pytest.mark.asyncio
    async def test_contact(self, classifier):
        result = await classifier.classify("İletişim bilgileri")
        assert result.intent == Intent.CHAT
        assert "Telefon" in result.reply

    @pytest.mark.asyncio
    async def test_unknown(self, classifier):
        result = await classifier.classify("asdfgh")
        assert result.intent == Intent.UNKNOWN
        assert result.reply

    @pytest.mark.asyncio
    async def test_symptom_outside_allowed_branches_is_skipped(self, classifier):
        branches = [b for b in BRANCHES if b != "Nöroloji"]
        result = await classifier.classify("Migren", branches)
        assert result.intent == Intent.UNKNOWN


# ---------------------------------------------------------------------------
# LLM classifier
# ---------------------------------------------------------------------------

class TestLLMIntentClassifier:
    """Tests for LLMIntentClassifier."""

    @pytest.fixture
    def classifier(self, mock_llm_router):
        return LLMIntentClassifier(mock_llm_router)

    def _respond(self, mock_llm_router, content):
        mock_llm_router.complete.return_value = LLMResponse(content=content, model="test-model")

    @pytest.mark.asyncio
    async def test_valid_response(self, classifier, mock_llm_router):
        self._respond(
            mock_llm_router,
            '{"intent": "ANALYZE_SYMPTOMS", "branch": "Nöroloji", "reply": "Nöroloji bölümüne görünün."}',
        )

        result = await classifier.classify("Başım çok ağrıyor")

        assert result.intent == Intent.ANALYZE_SYMPTOMS
        assert result.branch == "Nöroloji"
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_prompt_lists_branches_and_message(self, classifier, mock_llm_router):
        await classifier.classify("Kulağım çınlıyor")

        messages = mock_llm_router.complete.call_args.args[0]
        assert messages[0].role == MessageRole.SYSTEM
        assert "- Nöroloji" in messages[0].content
        assert "- Estetik Cerrahi" in messages[0].content
        assert messages[1].role == MessageRole.USER
        assert "Kulağım çınlıyor" in messages[1].content
        assert mock_llm_router.complete.call_args.kwargs["temperature"] == 0.0
        assert mock_llm_router.complete.call_args.kwargs["json_output"] is True

    @pytest.mark.asyncio
    async def test_fenced_response(self, classifier, mock_llm_router):
        self._respond(mock_llm_router, '```json\n{"intent": "LIST_BRANCHES", "reply": "Bölümler"}\n```')
        result = await classifier.classify("Hangi bölümler var?")
        assert result.intent == Intent.LIST_BRANCHES

    @pytest.mark.asyncio
    async def test_plain_text_response(self, classifier, mock_llm_router):
        self._respond(mock_llm_router, "Merhaba! Size nasıl yardımcı olabilirim?")

        result = await classifier.classify("Selam")

        assert result.intent == Intent.CHAT
        assert result.reply == ""
        assert result.degraded is True

    @pytest.mark.asyncio
    async def test_llm_failure_returns_safe_reply(self, classifier, mock_llm_router):
        mock_llm_router.complete.side_effect = LLMConnectionError("down")

        result = await classifier.classify("Başım ağrıyor")

        assert result.intent == Intent.UNKNOWN
        assert result.reply == SAFE_REPLY
        assert result.degraded is True


class TestCreateClassifierFromSettings:
    def test_keyword_backend(self):
        classifier = create_classifier_from_settings(Settings(classifier_backend="keyword"))
        assert isinstance(classifier, KeywordIntentClassifier)
        assert classifier.name == "keyword"

    def test_llm_backend(self, mock_llm_router):
        classifier = create_classifier_from_settings(
            Settings(classifier_backend="llm"), llm=mock_llm_router
        )
        assert isinstance(classifier, LLMIntentClassifier)
        assert classifier.llm is mock_llm_router
