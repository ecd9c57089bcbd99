"""
Best-effort lookup of contact details and scalar fields in parser JSON.

The parser output is a loosely-typed document, so each heuristic is a small
pure function that tolerates missing or oddly shaped values.
"""

import math
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from resort_cv_ai.schemas.cv_record import (
    AnalysisProjection,
    Demographics,
    EducationSummary,
    ExperienceSummary,
    LanguageEntry,
)
from resort_cv_ai.taxonomy import (
    AGE_KEY,
    CERTIFICATIONS_KEY,
    DEMOGRAPHICS_KEY,
    DURATION_KEY,
    EDUCATION_KEY,
    EDUCATION_LEVEL_KEY,
    ESTABLISHMENT_TYPE_KEY,
    EXPERIENCE_KEY,
    FIELD_RELEVANCE_KEY,
    LANGUAGES_KEY,
    POSITION_LEVEL_KEY,
    SOFT_SKILLS_KEY,
    TECHNICAL_SKILLS_KEY,
)
from resort_cv_ai.utils.helpers import EMAIL_PATTERN, PHONE_PATTERN, coerce_to_list

FULL_NAME_KEYS = ("candidateName", "fullName", "name", "Name", "Full Name")
EMAIL_KEYS = ("email", "Email", "e-mail", "emailAddress")
PHONE_KEYS = ("phone", "Phone", "phoneNumber", "mobile", "telephone")
BIRTHDATE_KEYS = ("birthdate", "birthDate", "dateOfBirth", "dob")
DEPARTMENT_KEYS = ("department", "Department")
SALARY_KEYS = ("expectedSalary", "Expected Salary", "expected_salary")
GENDER_KEYS = ("gender", "Gender")

# Digits with single `.`/`,` separators or space-separated thousand groups
_AMOUNT = re.compile(r"\d(?:[.,]?\d|\s\d{3}(?!\d))*")
_DECIMAL_PART = re.compile(r"[.,](\d{1,2})$")


def _demographics_section(parsed: Dict[str, Any]) -> Dict[str, Any]:
    for key in (DEMOGRAPHICS_KEY, "demographics"):
        section = parsed.get(key)
        if isinstance(section, dict):
            return section
    return {}


def _sources(parsed: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Demographics object first, then the top level."""
    section = _demographics_section(parsed)
    return [section, parsed] if section else [parsed]


def _first_string(parsed: Dict[str, Any], keys: Tuple[str, ...]) -> str:
    for source in _sources(parsed):
        for key in keys:
            value = source.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def _walk(value: Any, key: str = "") -> Iterator[Tuple[str, Any]]:
    """Yield (key, value) for every scalar in a nested document, depth first."""
    if isinstance(value, dict):
        for k, v in value.items():
            yield from _walk(v, str(k))
    elif isinstance(value, list):
        for item in value:
            yield from _walk(item, key)
    else:
        yield key, value


def split_full_name(full_name: str) -> Tuple[str, str]:
    """First token is the first name, last token the last name."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[-1]


def find_first_email(parsed: Dict[str, Any]) -> str:
    """Known email fields first, then any string value shaped like user@domain.tld."""
    for source in _sources(parsed):
        for key in EMAIL_KEYS:
            value = source.get(key)
            if isinstance(value, str):
                match = EMAIL_PATTERN.search(value)
                if match:
                    return match.group()
    for _, value in _walk(parsed):
        if isinstance(value, str):
            match = EMAIL_PATTERN.search(value)
            if match:
                return match.group()
    return ""


def find_first_phone(parsed: Dict[str, Any]) -> str:
    """Known phone fields containing a digit, then any value matching a North-American phone pattern."""
    for source in _sources(parsed):
        for key in PHONE_KEYS:
            value = source.get(key)
            if isinstance(value, str) and re.search(r"\d", value):
                return value.strip()
    for _, value in _walk(parsed):
        if isinstance(value, str):
            match = PHONE_PATTERN.search(value)
            if match:
                return match.group().strip()
    return ""


def find_birthdate(parsed: Dict[str, Any]) -> str:
    """Value of any field whose key contains "birth" or equals "dob"."""
    found = _first_string(parsed, BIRTHDATE_KEYS)
    if found:
        return found
    for key, value in _walk(parsed):
        lowered = key.lower()
        if ("birth" in lowered or lowered == "dob") and isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def parse_numeric_age(value: Any) -> Optional[float]:
    """Numeric age, or None for brackets like "23-28" and anything non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def parse_amount(value: Any) -> Optional[float]:
    """
    Numeric amount from values like 2500, "$2,500.50", "2500.00" or "2.500 EUR".
    The last `.` or `,` followed by one or two digits is the decimal separator;
    other separators group thousands. A range keeps its lower bound.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _AMOUNT.search(str(value).split("-", 1)[0])
    if not match:
        return None
    raw = re.sub(r"\s", "", match.group())
    decimal = _DECIMAL_PART.search(raw)
    if decimal:
        whole = re.sub(r"[.,]", "", raw[: decimal.start()])
        return float(f"{whole or 0}.{decimal.group(1)}")
    return float(re.sub(r"[.,]", "", raw))


def extract_demographics(parsed: Dict[str, Any]) -> Demographics:
    section = _demographics_section(parsed)
    first_name = str(section.get("firstName") or "").strip()
    last_name = str(section.get("lastName") or "").strip()
    if not first_name and not last_name:
        first_name, last_name = split_full_name(_first_string(parsed, FULL_NAME_KEYS))
    return Demographics(
        first_name=first_name,
        last_name=last_name,
        email=find_first_email(parsed),
        phone=find_first_phone(parsed),
        birthdate=find_birthdate(parsed),
    )


def _strings(value: Any) -> List[str]:
    return [v.strip() for v in coerce_to_list(value) if isinstance(v, str) and v.strip()]


def _languages(value: Any) -> List[LanguageEntry]:
    if isinstance(value, dict):
        return [LanguageEntry(name=str(k), level=str(v or "")) for k, v in value.items() if k]
    entries = []
    for item in coerce_to_list(value):
        if isinstance(item, dict):
            name = item.get("language") or item.get("name")
            if name:
                entries.append(LanguageEntry(name=str(name), level=str(item.get("level") or "")))
        elif isinstance(item, str) and item.strip():
            entries.append(LanguageEntry(name=item.strip()))
    return entries


def build_analysis_projection(parsed: Dict[str, Any]) -> AnalysisProjection:
    """Fixed-shape view of the parser output for display."""
    education = parsed.get(EDUCATION_KEY)
    experience = parsed.get(EXPERIENCE_KEY)
    skills = parsed.get(TECHNICAL_SKILLS_KEY)

    education_summary = EducationSummary()
    if isinstance(education, dict):
        levels = _strings(education.get(EDUCATION_LEVEL_KEY))
        education_summary = EducationSummary(
            level=levels[0] if levels else "",
            fields=_strings(education.get(FIELD_RELEVANCE_KEY)),
        )

    experience_summary = ExperienceSummary()
    if isinstance(experience, dict):
        durations = _strings(experience.get(DURATION_KEY))
        positions = _strings(experience.get(POSITION_LEVEL_KEY))
        experience_summary = ExperienceSummary(
            duration=durations[0] if durations else "",
            establishments=_strings(experience.get(ESTABLISHMENT_TYPE_KEY)),
            position=positions[0] if positions else "",
        )

    if isinstance(skills, dict):
        technical = [s for group in skills.values() for s in _strings(group)]
    else:
        technical = _strings(skills)

    return AnalysisProjection(
        languages=_languages(parsed.get(LANGUAGES_KEY)),
        education=education_summary,
        experience=experience_summary,
        technical_skills=technical,
        soft_skills=_strings(parsed.get(SOFT_SKILLS_KEY)),
        certifications=_strings(parsed.get(CERTIFICATIONS_KEY)),
    )


def derive_record_fields(parsed: Dict[str, Any], demographics: Demographics) -> Dict[str, Any]:
    """Scalar fields promoted to the top of the CV record; absent values are left out."""
    fields: Dict[str, Any] = {}
    if demographics.first_name:
        fields["first_name"] = demographics.first_name
    if demographics.last_name:
        fields["last_name"] = demographics.last_name
    age = parse_numeric_age(parsed.get(AGE_KEY))
    if age is not None:
        fields["age"] = age
    if demographics.email:
        fields["email"] = demographics.email
    if demographics.phone:
        fields["phone"] = demographics.phone
    if demographics.birthdate:
        fields["birthdate"] = demographics.birthdate
    department = _first_string(parsed, DEPARTMENT_KEYS)
    if department:
        fields["department"] = department
    for source in _sources(parsed):
        salary = next((parse_amount(source[k]) for k in SALARY_KEYS if source.get(k) not in (None, "")), None)
        if salary is not None:
            fields["expected_salary"] = salary
            break
    gender = _first_string(parsed, GENDER_KEYS)
    if gender:
        fields["gender"] = gender.lower()
    return fields
