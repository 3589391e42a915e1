"""Conversational router: classified intent in, reply envelope out."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_assistant.assistant.classifier import IntentClassifier
from clinic_assistant.assistant.dictionary import friendly_name
from clinic_assistant.assistant.envelope import (
    BOOKING_OPTIONS,
    BRANCH_LIST_OPTIONS,
    FALLBACK_OPTIONS,
    LOGIN_OPTIONS,
    MAIN_MENU,
    RETRY_OPTIONS,
    Reply,
    ReplyOption,
    ReplyType,
)
from clinic_assistant.assistant.intents import (
    BRANCHES,
    ClassifiedIntent,
    Intent,
    canonical_branch,
    fold_text,
)
from clinic_assistant.config import Settings, get_settings
from clinic_assistant.core.models import Doctor
from clinic_assistant.core.repository import (
    AppointmentRepository,
    ClinicRepository,
    DoctorRepository,
    PatientRepository,
)
from clinic_assistant.errors import StoreUnavailable, Unauthenticated
from clinic_assistant.observability import get_observability_logger

logger = logging.getLogger(__name__)

SYMPTOM_DOCTOR_LIMIT = 3
FIND_DOCTOR_LIMIT = 10
RECENT_APPOINTMENT_LIMIT = 5
BRANCH_CHOICE_LIMIT = 4

LOGIN_TEXT = "Bu bilgiyi görmek için lütfen giriş yapın."
STORE_ERROR_TEXT = "Bir sorun oluştu, lütfen tekrar deneyin."
NO_PATIENT_TEXT = "Hasta kaydı bulunamadı."

Handler = Callable[[ClassifiedIntent, Optional[str]], Awaitable[Reply]]


def _branch_choices(branches: Sequence[str] = BRANCHES) -> list[ReplyOption]:
    return [
        ReplyOption(label=branch, action=f"{branch} doktorları")
        for branch in branches[:BRANCH_CHOICE_LIMIT]
    ]


def _sort_order(step: dict[str, Any]) -> float:
    order = step.get("order")
    return order if isinstance(order, (int, float)) else float("inf")


class ConversationalRouter:
    """Dispatches a classified message to its lookup and builds the reply.

    Each turn is independent; only the patient identity and the slots the
    classifier extracted from the current message are used.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        classifier: IntentClassifier,
        settings: Optional[Settings] = None,
    ):
        self._session_factory = session_factory
        self.classifier = classifier
        self.settings = settings or get_settings()
        self._handlers: dict[Intent, Handler] = {
            Intent.ANALYZE_SYMPTOMS: self._analyze_symptoms,
            Intent.FIND_DOCTOR: self._find_doctor,
            Intent.GET_APPOINTMENTS: self._get_appointments,
            Intent.GET_MEDICATIONS: self._get_medications,
            Intent.GET_TREATMENT_PLAN: self._get_treatment_plan,
            Intent.LIST_BRANCHES: self._list_branches,
            Intent.NAVIGATE_TO_APPOINTMENT: self._navigate_to_appointment,
            Intent.CHAT: self._chat,
            Intent.UNKNOWN: self._unknown,
        }

    async def handle(
        self,
        text: str,
        patient_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Reply:
        """Classify ``text`` and route it."""
        obs = get_observability_logger()
        with obs.conversation_turn(
            classifier=self.classifier.name,
            text=text,
            authenticated=bool(patient_id),
            request_id=request_id,
        ) as event:
            classified = await self.classifier.classify(text, BRANCHES)
            reply = await self.route(classified, patient_id)

            event.intent = classified.intent.value
            event.branch = classified.branch
            event.degraded = classified.degraded
            event.reply_type = reply.type.value
            event.item_count = len(reply.data or [])

        logger.info(f"Routed {classified.intent.value} -> {reply.type.value}")
        return reply

    async def route(self, classified: ClassifiedIntent, patient_id: Optional[str] = None) -> Reply:
        handler = self._handlers.get(classified.intent, self._unknown)
        try:
            return await handler(classified, patient_id)
        except Unauthenticated:
            return Reply.text_only(LOGIN_TEXT, LOGIN_OPTIONS)
        except (SQLAlchemyError, StoreUnavailable) as e:
            logger.error(f"Record store failure while handling {classified.intent.value}: {e}")
            return Reply.text_only(STORE_ERROR_TEXT, RETRY_OPTIONS)

    # ---- enrichment

    async def _clinic_name(self, clinic_id: Optional[str]) -> str:
        default = self.settings.default_clinic_name
        if not clinic_id:
            return default
        try:
            async with self._session_factory() as session:
                clinic = await ClinicRepository(session).get_by_id(clinic_id)
        except SQLAlchemyError as e:
            logger.warning(f"Clinic lookup failed for {clinic_id}: {e}")
            return default
        return clinic.name if clinic is not None else default

    async def _clinic_names(self, clinic_ids: Sequence[Optional[str]]) -> list[str]:
        return list(await asyncio.gather(*(self._clinic_name(cid) for cid in clinic_ids)))

    async def _doctor_cards(self, doctors: Sequence[Doctor]) -> list[dict[str, Any]]:
        names = await self._clinic_names([d.clinic_id for d in doctors])
        return [
            {
                "id": doctor.id,
                "fullName": doctor.full_name,
                "specialization": doctor.specialization,
                "experience": doctor.experience,
                "clinicId": doctor.clinic_id,
                "clinicName": name,
            }
            for doctor, name in zip(doctors, names)
        ]

    async def _doctors_in(self, specialization: str, limit: int) -> Sequence[Doctor]:
        async with self._session_factory() as session:
            return await DoctorRepository(session).list_by_specialization(specialization, limit=limit)

    async def _patient(self, patient_id: Optional[str]):
        if not patient_id:
            raise Unauthenticated()
        async with self._session_factory() as session:
            return await PatientRepository(session).get_by_id(patient_id)

    # ---- intents

    async def _analyze_symptoms(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        branch = canonical_branch(classified.branch)
        if branch is None:
            text = classified.reply or "Şikayetiniz için uygun bölümü belirleyemedim."
            return Reply.text_only(text, BRANCH_LIST_OPTIONS)

        doctors = await self._doctors_in(branch, SYMPTOM_DOCTOR_LIMIT)
        text = classified.reply or f"Şikayetiniz için {branch} bölümü uygun görünüyor."
        if not doctors:
            return Reply.text_only(
                f"{text}\n\nŞu an sistemde {branch} bölümüne ait uygun doktor bulunamadı.",
                BRANCH_LIST_OPTIONS,
            )

        return Reply(
            text=text,
            type=ReplyType.DOCTOR_LIST,
            data=await self._doctor_cards(doctors),
            options=BOOKING_OPTIONS,
        )

    async def _find_doctor(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        requested = (classified.branch or "").strip()
        if not requested or "tüm" in fold_text(requested):
            return Reply.text_only("Hangi bölümden doktor arıyorsunuz?", _branch_choices())

        branch = canonical_branch(requested) or requested
        doctors = await self._doctors_in(branch, FIND_DOCTOR_LIMIT)
        if not doctors:
            return Reply.text_only(f"{branch} bölümünde doktor bulunamadı.", BRANCH_LIST_OPTIONS)

        return Reply(
            text=classified.reply or f"{branch} doktorlarımız:",
            type=ReplyType.DOCTOR_LIST,
            data=await self._doctor_cards(doctors),
            options=BOOKING_OPTIONS,
        )

    async def _get_appointments(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        if not patient_id:
            raise Unauthenticated()

        async with self._session_factory() as session:
            appointments = await AppointmentRepository(session).list_by_patient(patient_id)

        if not appointments:
            return Reply.text_only(
                "Şu an aktif veya geçmiş randevunuz bulunmuyor. Yeni randevu almak ister misiniz?",
                BOOKING_OPTIONS,
            )

        # The store gives no ordering guarantee.
        recent = sorted(appointments, key=lambda a: (a.date_iso, a.start), reverse=True)
        recent = recent[:RECENT_APPOINTMENT_LIMIT]
        names = await self._clinic_names([a.clinic_id for a in recent])

        data = [
            {
                "id": appt.id,
                "dateISO": appt.date_iso,
                "start": appt.start,
                "typeName": appt.type_name,
                "status": appt.status,
                "doctorId": appt.doctor_id,
                "clinicId": appt.clinic_id,
                "clinicName": name,
            }
            for appt, name in zip(recent, names)
        ]
        return Reply(
            text=classified.reply or "📋 İşte son randevularınız:",
            type=ReplyType.APPOINTMENT_LIST,
            data=data,
            options=BOOKING_OPTIONS,
        )

    async def _get_medications(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        patient = await self._patient(patient_id)
        if patient is None:
            return Reply.text_only(NO_PATIENT_TEXT)

        data = []
        for entry in patient.medications or []:
            if isinstance(entry, dict):
                name, dosage = str(entry.get("name", "")), entry.get("dosage")
            else:
                name, dosage = str(entry), None
            data.append({"name": name, "friendlyName": friendly_name(name), "dosage": dosage})

        if not data:
            return Reply.text_only("Kayıtlı ilacınız bulunmuyor.", MAIN_MENU)

        return Reply(
            text=classified.reply or "💊 Güncel ilaçlarınız:",
            type=ReplyType.MEDICATION_LIST,
            data=data,
        )

    async def _get_treatment_plan(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        patient = await self._patient(patient_id)
        if patient is None:
            return Reply.text_only(NO_PATIENT_TEXT)

        plan = patient.treatment_plan or {}
        steps = [s for s in plan.get("treatmentSequence") or [] if isinstance(s, dict)]
        if not steps:
            return Reply.text_only("Size atanmış bir tedavi planı bulunmuyor.", MAIN_MENU)

        data = [
            {
                "order": step.get("order"),
                "treatment": step.get("treatment", ""),
                "friendlyName": friendly_name(str(step.get("treatment", ""))),
                "dosage": step.get("dosage"),
                "description": step.get("description"),
                "phase": step.get("phase"),
            }
            for step in sorted(steps, key=_sort_order)
        ]
        title = plan.get("name")
        default_text = f"📋 {title} tedavi planınız:" if title else "📋 Tedavi planınız:"
        return Reply(
            text=classified.reply or default_text,
            type=ReplyType.TREATMENT_LIST,
            data=data,
        )

    async def _list_branches(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        listing = "\n".join(f"• {branch}" for branch in BRANCHES)
        return Reply.text_only(f"🏥 Bölümlerimiz:\n{listing}", _branch_choices())

    async def _navigate_to_appointment(
        self, classified: ClassifiedIntent, patient_id: Optional[str]
    ) -> Reply:
        return Reply.text_only(
            classified.reply or "Yeni randevu oluşturmak için klinik seçimi sayfasına yönlendiriyorum.",
            [ReplyOption(label="🏥 Klinik Seç", action="NAVIGATE_APPOINTMENT")],
        )

    async def _chat(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        return Reply.text_only(classified.reply or "Size nasıl yardımcı olabilirim?", MAIN_MENU)

    async def _unknown(self, classified: ClassifiedIntent, patient_id: Optional[str]) -> Reply:
        text = classified.reply or "Bunu tam anlayamadım. Şikayetinizi biraz daha açık yazar mısınız?"
        return Reply.text_only(text, FALLBACK_OPTIONS)
