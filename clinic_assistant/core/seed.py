"""Sample clinics, doctors, appointment types and a demo patient."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_assistant.core.models import Clinic
from clinic_assistant.core.repository import (
    AppointmentTypeRepository,
    ClinicRepository,
    DoctorRepository,
    PatientRepository,
)

logger = logging.getLogger(__name__)

DEMO_PATIENT_ID = "demo-patient"

SAMPLE_CLINICS = [
    {
        "name": "Ege Life Tıp Merkezi",
        "description": "Ege bölgesinin en kapsamlı sağlıklı yaşam merkezi.",
        "address": "Alsancak / İzmir",
        "phone": "+902324445511",
        "email": "info@egelife.com",
        "specialties": ["Kardiyoloji", "Dahiliye", "Nöroloji", "Dermatoloji", "Beslenme ve Diyet"],
    },
    {
        "name": "Anadolu Şifa Polikliniği",
        "description": "Geleneksel tıp ve modern cerrahi bir arada.",
        "address": "Selçuklu / Konya",
        "phone": "+903323334455",
        "email": "iletisim@anadolusifa.com",
        "specialties": ["Genel Cerrahi", "Dahiliye", "Ortopedi", "Fizik Tedavi", "Çocuk Sağlığı"],
    },
    {
        "name": "Boğaziçi Sağlık Grubu",
        "description": "İstanbul'un kalbinde uzman psikolojik ve fiziksel destek.",
        "address": "Şişli / İstanbul",
        "phone": "+902122223344",
        "email": "info@bogazicisaglik.com",
        "specialties": ["Göz Hastalıkları", "Diş Hekimliği", "Psikiyatri", "KBB", "Estetik Cerrahi"],
    },
]

SAMPLE_DOCTORS = {
    "Ege Life Tıp Merkezi": [
        ("Prof. Dr. Mehmet Öz", "Kardiyoloji", "20 Yıl"),
        ("Uzm. Dr. Ayşe Yılmaz", "Dahiliye", "8 Yıl"),
        ("Dr. Ali Vural", "Nöroloji", "12 Yıl"),
        ("Uzm. Dr. Zeynep Su", "Dermatoloji", "6 Yıl"),
        ("Dyt. Elif Fit", "Beslenme ve Diyet", "4 Yıl"),
    ],
    "Anadolu Şifa Polikliniği": [
        ("Op. Dr. Burak Can", "Genel Cerrahi", "15 Yıl"),
        ("Dr. Fatma Çelik", "Dahiliye", "5 Yıl"),
        ("Uzm. Dr. Kemal Taş", "Ortopedi", "10 Yıl"),
        ("Fzt. Ahmet Güçlü", "Fizik Tedavi", "7 Yıl"),
        ("Uzm. Dr. Neşe Şen", "Çocuk Sağlığı", "11 Yıl"),
    ],
    "Boğaziçi Sağlık Grubu": [
        ("Prof. Dr. Berna Göz", "Göz Hastalıkları", "18 Yıl"),
        ("Dt. Caner Dişçi", "Diş Hekimliği", "7 Yıl"),
        ("Uzm. Dr. Selin Ruh", "Psikiyatri", "9 Yıl"),
        ("Op. Dr. Tarık Burun", "KBB", "14 Yıl"),
        ("Op. Dr. Can Estet", "Estetik Cerrahi", "6 Yıl"),
    ],
}

SAMPLE_APPOINTMENT_TYPES = [
    {"id": "muayene", "name": "Muayene", "duration_minutes": 30},
    {"id": "kontrol", "name": "Kontrol", "duration_minutes": 20},
    {"id": "konsultasyon", "name": "Konsültasyon", "duration_minutes": 60},
    {"id": "tedavi-seansi", "name": "Tedavi Seansı", "duration_minutes": 90},
]

DEMO_PATIENT = {
    "id": DEMO_PATIENT_ID,
    "full_name": "Deniz Kaya",
    "email": "deniz.kaya@example.com",
    "phone": "+905551112233",
    "medications": [
        {"name": "PROLOTEPARİ Seans 3", "dosage": "Haftada 1"},
        {"name": "Parol 500mg", "dosage": "Günde 3 kez (ağrı oldukça)"},
        {"name": "Coraspin 100mg", "dosage": "Günde 1 kez (tok)"},
    ],
    "treatment_plan": {
        "name": "Bel Fıtığı Rehabilitasyon",
        "treatmentSequence": [
            {"order": 2, "treatment": "Kuru İğneleme", "description": "Kas spazmı için.", "phase": "Ana Tedavi"},
            {"order": 1, "treatment": "Manuel Terapi", "description": "Omurga mobilizasyonu.", "phase": "Ana Tedavi"},
            {"order": 3, "treatment": "OZON Terapi", "dosage": "10 Seans", "phase": "Rejenerasyon"},
        ],
    },
}


async def seed_sample_data(session: AsyncSession) -> dict[str, int]:
    """Insert the sample data set unless clinics already exist."""
    existing = await session.execute(select(Clinic.id).limit(1))
    if existing.scalar_one_or_none() is not None:
        logger.info("Record store already seeded, skipping")
        return {"clinics": 0, "doctors": 0, "appointment_types": 0, "patients": 0}

    clinics = ClinicRepository(session)
    doctors = DoctorRepository(session)
    doctor_count = 0
    for data in SAMPLE_CLINICS:
        clinic = await clinics.create(**data)
        for full_name, specialization, experience in SAMPLE_DOCTORS.get(clinic.name, []):
            await doctors.create(
                clinic_id=clinic.id,
                full_name=full_name,
                specialization=specialization,
                experience=experience,
            )
            doctor_count += 1

    types = AppointmentTypeRepository(session)
    for data in SAMPLE_APPOINTMENT_TYPES:
        await types.create(**data)

    await PatientRepository(session).create(**DEMO_PATIENT)
    await session.commit()

    counts = {
        "clinics": len(SAMPLE_CLINICS),
        "doctors": doctor_count,
        "appointment_types": len(SAMPLE_APPOINTMENT_TYPES),
        "patients": 1,
    }
    logger.info(f"Seeded record store: {counts}")
    return counts
