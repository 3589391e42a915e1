"""Static dictionary of drug and treatment codes with patient-friendly descriptions."""

from clinic_assistant.assistant.intents import fold_text

FRIENDLY_NAMES: dict[str, str] = {
    # Treatments
    "PROLOTEPARİ": "Proloterapi (eklem ve bağ dokusunu güçlendiren enjeksiyon tedavisi)",
    "PROLOTERAPİ": "Proloterapi (eklem ve bağ dokusunu güçlendiren enjeksiyon tedavisi)",
    "OZON": "Ozon Terapi (dolaşımı ve doku onarımını destekleyen tedavi)",
    "PRP": "PRP (kendi kanınızdan hazırlanan trombositten zengin plazma)",
    "AKUPUNKTUR": "Akupunktur (ince iğnelerle ağrı tedavisi)",
    "KURU İĞNE": "Kuru İğneleme (kas spazmını çözen iğne uygulaması)",
    "MANUEL TERAPİ": "Manuel Terapi (elle yapılan eklem ve omurga mobilizasyonu)",
    "PİLATES": "Klinik Pilates (uzman eşliğinde güçlendirme egzersizleri)",
    "MEZOTERAPİ": "Mezoterapi (cilt altına mikro enjeksiyon tedavisi)",
    "HACAMAT": "Hacamat (kupa ile kan alma uygulaması)",
    "FTR": "Fizik Tedavi ve Rehabilitasyon seansı",
    # Drugs
    "PAROL": "Parol (parasetamol; ağrı kesici ve ateş düşürücü)",
    "CORASPIN": "Coraspin (asetilsalisilik asit; kan sulandırıcı)",
    "MAJEZİK": "Majezik (flurbiprofen; ağrı kesici ve iltihap giderici)",
    "ARVELES": "Arveles (deksketoprofen; ağrı kesici)",
    "MUSCORIL": "Muscoril (tiyokolşikosid; kas gevşetici)",
    "B12": "B12 Vitamini takviyesi",
    "D VİTAMİNİ": "D Vitamini takviyesi",
}


_MATCH_ORDER = sorted(
    ((fold_text(key), value) for key, value in FRIENDLY_NAMES.items()),
    key=lambda item: len(item[0]),
    reverse=True,
)


def friendly_name(term: str) -> str:
    """Return the friendly description for ``term``.

    An entry matches when its key appears anywhere in the term, ignoring
    case. The longest matching key wins. Without a match the term itself is
    returned.
    """
    if not term:
        return term
    folded = fold_text(term)
    for key, value in _MATCH_ORDER:
        if key in folded:
            return value
    return term
