"""
Keyword tables for restraint review.

The tables are plain data so they can be extended and tested without
touching the matching code in ``careguard.restraint``.  Entries are
lower-case; matching is a case-insensitive substring search.  Spanish and
English wording are both listed because caregivers document in either.

* ``CLASSIFICATION_TABLE`` -- ordered ``(keyword, RestraintType)`` pairs.
  Grouped chemical, then mechanical, then environmental: the first group
  with a match decides the type.
* ``MEDICAL_INDICATION_KEYWORDS`` -- a match permits a chemical restraint.
* ``BEHAVIORAL_KEYWORDS`` -- a match (with no medical indication) blocks it.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from careguard.models import RestraintType


CLASSIFICATION_TABLE: tuple[tuple[str, RestraintType], ...] = (
    # Chemical
    ("sedante", RestraintType.CHEMICAL),
    ("sedative", RestraintType.CHEMICAL),
    ("tranquilizante", RestraintType.CHEMICAL),
    ("tranquilizer", RestraintType.CHEMICAL),
    ("antipsicótico", RestraintType.CHEMICAL),
    ("antipsicotico", RestraintType.CHEMICAL),
    ("antipsychotic", RestraintType.CHEMICAL),
    ("benzodiacepina", RestraintType.CHEMICAL),
    ("benzodiazepine", RestraintType.CHEMICAL),
    # Mechanical
    ("barandilla", RestraintType.MECHANICAL),
    ("rail", RestraintType.MECHANICAL),
    ("cinturón", RestraintType.MECHANICAL),
    ("cinturon", RestraintType.MECHANICAL),
    ("belt", RestraintType.MECHANICAL),
    ("sujeción", RestraintType.MECHANICAL),
    ("sujecion", RestraintType.MECHANICAL),
    ("restraint strap", RestraintType.MECHANICAL),
    ("correa", RestraintType.MECHANICAL),
    ("chaleco", RestraintType.MECHANICAL),
    ("vest", RestraintType.MECHANICAL),
    # Environmental
    ("puerta", RestraintType.ENVIRONMENTAL),
    ("door", RestraintType.ENVIRONMENTAL),
    ("alarma", RestraintType.ENVIRONMENTAL),
    ("alarm", RestraintType.ENVIRONMENTAL),
    ("sensor", RestraintType.ENVIRONMENTAL),
    ("cerradura", RestraintType.ENVIRONMENTAL),
    ("lock", RestraintType.ENVIRONMENTAL),
)

DEFAULT_RESTRAINT_TYPE = RestraintType.MECHANICAL


MEDICAL_INDICATION_KEYWORDS: tuple[str, ...] = (
    "ansiedad clínica",
    "trastorno de ansiedad",
    "insomnio",
    "convulsiones",
    "epilepsia",
    "procedimiento médico",
    "cirugía",
    "anestesia",
    "dolor severo",
    "abstinencia",
    "delirium tremens",
    "clinical anxiety disorder",
    "anxiety disorder",
    "insomnia",
    "seizures",
    "seizure",
    "epilepsy",
    "surgical procedure",
    "medical procedure",
    "surgery",
    "anesthesia",
    "severe pain",
    "withdrawal",
)


BEHAVIORAL_KEYWORDS: tuple[str, ...] = (
    "agitación",
    "agitado",
    "agitada",
    "inquieto",
    "inquieta",
    "deambulación",
    "deambular",
    "comportamiento",
    "conducta",
    "agresivo",
    "agresiva",
    "agresividad",
    "confusión",
    "confuso",
    "confusa",
    "desorientado",
    "desorientada",
    "desorientación",
    "intranquilo",
    "nervioso",
    "ansioso",
    "no coopera",
    "resistencia",
    "agitation",
    "agitated",
    "aggressive",
    "aggression",
    "wandering",
    "non-cooperative",
    "uncooperative",
    "confusion",
    "confused",
    "restless",
    "disoriented",
    "behavior",
    "behaviour",
    "resistance",
)


def first_match(
    text: str, table: Sequence[tuple[str, RestraintType]]
) -> Optional[RestraintType]:
    """Return the tag of the first table entry whose keyword occurs in ``text``."""
    lowered = text.lower()
    for keyword, tag in table:
        if keyword in lowered:
            return tag
    return None


def contains_any(texts: Iterable[str], keywords: Iterable[str]) -> bool:
    """True if any keyword occurs (case-insensitively) in any of ``texts``."""
    lowered = [t.lower() for t in texts]
    return any(kw in text for kw in keywords for text in lowered)
