"""
Convert parser JSON into flat, normalized tags for filtering and search.

Tags look like `category:value` or `category:subcategory:value`. Conversion is
pure and deterministic. Each field is converted independently: a malformed
field is logged and skipped while the rest still produce tags.
"""

import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from resort_cv_ai.taxonomy import (
    AGE_BRACKETS,
    AGE_KEY,
    CERTIFICATIONS_KEY,
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
from resort_cv_ai.utils.helpers import coerce_to_list
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)

CERTIFICATION_MAX_CHARS = 30
DEFAULT_LANGUAGE_LEVEL = "basic"
GENERAL_SKILL_CATEGORY = "general"

# (keywords, normalized value); first match wins
LANGUAGE_LEVEL_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("native", "mother"), "native"),
    (("fluent", "proficient"), "fluent"),
    (("advanced", "c1", "c2"), "advanced"),
    (("intermediate", "b1", "b2"), "intermediate"),
    (("basic", "beginner", "elementary", "a1", "a2"), "basic"),
]

EDUCATION_LEVEL_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("high school", "secondary"), "high-school"),
    (("associate",), "associate-degree"),
    (("bachelor", "licence", "undergraduate"), "bachelors-degree"),
    (("master", "mba"), "masters-degree"),
    (("phd", "doctorate", "doctoral"), "phd"),
    (("vocational", "technical"), "vocational-certificate"),
    (("diploma",), "professional-diploma"),
    (("certification", "certificate"), "industry-certification"),
]

FIELD_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("hospitality",), "hospitality-management"),
    (("tourism",), "tourism"),
    (("culinary", "chef", "gastronomy"), "culinary-arts"),
    (("business admin", "business administration"), "business-administration"),
    (("finance", "accounting"), "finance-accounting"),
    (("engineering",), "engineering"),
    (("it", "computer", "software", "information technology"), "it-computer-science"),
    (("recreation",), "recreation-management"),
    (("marketing", "communications"), "marketing-communications"),
    (("human resource", "human resources"), "human-resources"),
    (("health", "safety"), "health-safety"),
    (("sports", "leisure"), "sports-leisure"),
    (("environmental",), "environmental-management"),
    (("spa", "wellness"), "spa-wellness"),
    (("landscape",), "landscape-architecture"),
]

ESTABLISHMENT_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("luxury",), "luxury-resort"),
    (("business hotel",), "business-hotel"),
    (("restaurant", "bar"), "restaurant-bar"),
    (("tour operator",), "tour-operator"),
    (("cruise",), "cruise-line"),
    (("event",), "event-company"),
    (("corporate",), "corporate-office"),
    (("chain",), "chain-hotel"),
    (("boutique",), "boutique-property"),
    (("casino",), "casino"),
    (("golf",), "golf-resort"),
    (("thermal", "wellness"), "thermal-wellness-resort"),
    (("all-inclusive", "all inclusive"), "all-inclusive-resort"),
    (("timeshare",), "timeshare-property"),
]

POSITION_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("entry", "junior", "trainee", "intern"), "entry-level"),
    (("specialist",), "specialist"),
    (("supervisor",), "supervisor"),
    (("manager",), "manager"),
    (("department head", "head of"), "department-head"),
    (("director",), "director"),
    (("executive", "c-level"), "executive"),
]

SKILL_CATEGORY_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("front", "front office", "reception", "reservation", "call center"), "front-office"),
    (("housekeeping", "laundry", "cleaning", "flower"), "housekeeping"),
    (("f&b", "kitchen", "food", "beverage", "dishroom", "culinary"), "fb-kitchen"),
    (("accounting", "finance", "purchasing"), "accounting-finance"),
    (("it", "technical", "tech", "technology"), "it-technical"),
    (("entertainment", "kids", "spa", "animation"), "entertainment-spa"),
    (("hr", "human resources", "quality"), "hr-quality"),
    (("marketing", "sales"), "marketing-sales"),
    (("grounds", "landscape", "garden"), "grounds"),
]

CERTIFICATION_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (lambda c: "food" in c and "safety" in c, "food-safety"),
    (lambda c: ("first" in c and "aid" in c) or "cpr" in c, "first-aid-cpr"),
    (lambda c: "fire" in c and "safety" in c, "fire-safety"),
    (lambda c: "hospitality" in c and "management" in c, "hospitality-management"),
]

_EXPERIENCE_LABELS: List[Tuple[str, str]] = [
    (r"\bno experience\b|\bnone\b", "no-experience"),
    (r"less than (?:1|one)\b|<\s*1\b", "less-than-1-year"),
    (r"\b10\s*\+|\b(?:over|more than)\s+10\b", "10+-years"),
    (r"\b5\s*-\s*10\b", "5-10-years"),
    (r"\b3\s*-\s*5\b", "3-5-years"),
    (r"\b1\s*-\s*3\b", "1-3-years"),
]
_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")
_YEARS = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:years?|yrs?)\b")
_MONTHS = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:months?|mos?)\b")


def _to_number(match: Optional[re.Match]) -> float:
    return float(match.group(1).replace(",", ".")) if match else 0.0


def format_tag_value(value: Any) -> str:
    """Lower-case kebab form: `/` and `&` become hyphens, other punctuation is dropped."""
    text = str(value).strip().lower()
    text = re.sub(r"[/&]", "-", text)
    text = re.sub(r"[^\w\s+-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-{2,}", "-", text)
    return text.strip("-")


def _contains_keyword(text: str, keyword: str) -> bool:
    return re.search(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", text) is not None


def _match_rules(text: str, rules: Iterable[Tuple[Tuple[str, ...], str]]) -> Optional[str]:
    lowered = text.lower()
    for keywords, value in rules:
        if any(_contains_keyword(lowered, k) for k in keywords):
            return value
    return None


def _strings(value: Any) -> List[str]:
    return [str(v).strip() for v in coerce_to_list(value) if isinstance(v, (str, int, float)) and not isinstance(v, bool)]


# ----- Field converters: each returns the tags for one parser field -----


def age_tags(value: Any) -> List[str]:
    if value is None or value == "" or isinstance(value, bool):
        return []
    try:
        age = float(str(value).strip())
    except ValueError:
        bracket = re.sub(r"\s+", " ", str(value).strip().lower())
        for known in AGE_BRACKETS:
            if bracket.replace(" ", "") == known.replace(" ", ""):
                return [f"age:{format_tag_value(known)}"]
        return []
    if math.isnan(age) or math.isinf(age):
        return []
    # Brackets are whole years; 22.5 is still 22
    age = math.floor(age)
    if age < 18:
        return ["age:under-18"]
    if age <= 22:
        return ["age:18-22"]
    if age <= 28:
        return ["age:23-28"]
    if age <= 35:
        return ["age:29-35"]
    if age <= 45:
        return ["age:36-45"]
    return ["age:46+"]


def normalize_language_level(level: Any) -> str:
    return _match_rules(str(level or ""), LANGUAGE_LEVEL_RULES) or DEFAULT_LANGUAGE_LEVEL


def _language_pairs(value: Any) -> List[Tuple[str, Any]]:
    """Accepts {lang: level}, [{"language": .., "level": ..}] or ["English (Fluent)", ...]."""
    if isinstance(value, dict):
        return list(value.items())
    pairs = []
    for item in coerce_to_list(value):
        if isinstance(item, dict):
            name = item.get("language") or item.get("name") or item.get("Language")
            level = item.get("level") or item.get("proficiency") or item.get("Level")
            if name:
                pairs.append((name, level))
        elif isinstance(item, str):
            match = re.match(r"^\s*([^(:\-]+?)\s*(?:[(:\-]\s*([^)]*)\)?)?\s*$", item)
            if match:
                pairs.append((match.group(1), match.group(2)))
    return pairs


def language_tags(value: Any) -> List[str]:
    tags = []
    for language, level in _language_pairs(value):
        if not isinstance(language, str) or not language.strip():
            continue
        if level is None or not str(level).strip():
            continue
        tags.append(f"language:{format_tag_value(language)}-{normalize_language_level(level)}")
    return tags


def education_tags(value: Any) -> List[str]:
    if not isinstance(value, dict):
        return []
    tags = []
    for level in _strings(value.get(EDUCATION_LEVEL_KEY)):
        mapped = _match_rules(level, EDUCATION_LEVEL_RULES)
        if mapped:
            tags.append(f"education:{mapped}")
    for field in _strings(value.get(FIELD_RELEVANCE_KEY)):
        mapped = _match_rules(field, FIELD_RULES) or format_tag_value(field)
        if mapped:
            tags.append(f"field:{mapped}")
    return tags


def experience_duration_tag(duration: Any) -> Optional[str]:
    """Map a duration label ("3-5 years") or a plain number of years ("4 years") to a bucket."""
    if isinstance(duration, bool):
        return None
    text = str(duration or "").strip().lower()
    if not text:
        return None
    for pattern, bucket in _EXPERIENCE_LABELS:
        if re.search(pattern, text):
            return f"experience:{bucket}"
    year_count = _YEARS.search(text)
    month_count = _MONTHS.search(text)
    if year_count or month_count:
        years = _to_number(year_count) + _to_number(month_count) / 12
    else:
        number = _NUMBER.search(text)
        if not number:
            return None
        years = float(number.group().replace(",", "."))
    if years <= 0:
        return "experience:no-experience"
    if years < 1:
        return "experience:less-than-1-year"
    if years < 3:
        return "experience:1-3-years"
    if years < 5:
        return "experience:3-5-years"
    if years < 10:
        return "experience:5-10-years"
    return "experience:10+-years"


def experience_tags(value: Any) -> List[str]:
    if not isinstance(value, dict):
        return []
    tags = []
    duration = experience_duration_tag(value.get(DURATION_KEY))
    if duration:
        tags.append(duration)
    for establishment in _strings(value.get(ESTABLISHMENT_TYPE_KEY)):
        mapped = _match_rules(establishment, ESTABLISHMENT_RULES) or "other"
        tags.append(f"establishment:{mapped}")
    for position in _strings(value.get(POSITION_LEVEL_KEY)):
        mapped = _match_rules(position, POSITION_RULES)
        if mapped:
            tags.append(f"position:{mapped}")
    return tags


def map_skill_category(category: str) -> str:
    return _match_rules(category or "", SKILL_CATEGORY_RULES) or GENERAL_SKILL_CATEGORY


def technical_skill_tags(value: Any) -> List[str]:
    """Category values may be a single string or a list of strings."""
    if isinstance(value, dict):
        groups = list(value.items())
    else:
        groups = [(GENERAL_SKILL_CATEGORY, value)]
    tags = []
    for category, skills in groups:
        mapped = map_skill_category(str(category))
        for skill in _strings(skills):
            normalized = format_tag_value(skill)
            if normalized:
                tags.append(f"technical-skill:{mapped}:{normalized}")
    return tags


def soft_skill_tags(value: Any) -> List[str]:
    return [f"soft-skill:{s}" for s in (format_tag_value(v) for v in _strings(value)) if s]


def certification_tags(value: Any) -> List[str]:
    tags = []
    for cert in _strings(value):
        lowered = cert.lower()
        mapped = next((tag for rule, tag in CERTIFICATION_RULES if rule(lowered)), None)
        if mapped is None:
            mapped = format_tag_value(cert)[:CERTIFICATION_MAX_CHARS].strip("-")
        if mapped:
            tags.append(f"certification:{mapped}")
    return tags


FIELD_CONVERTERS: List[Tuple[str, Callable[[Any], List[str]]]] = [
    (AGE_KEY, age_tags),
    (LANGUAGES_KEY, language_tags),
    (EDUCATION_KEY, education_tags),
    (EXPERIENCE_KEY, experience_tags),
    (TECHNICAL_SKILLS_KEY, technical_skill_tags),
    (SOFT_SKILLS_KEY, soft_skill_tags),
    (CERTIFICATIONS_KEY, certification_tags),
]


def convert_parsed_cv_to_tags(parsed: Dict[str, Any]) -> List[str]:
    """
    Build the tag list for a parsed CV. Never raises: a field that fails to
    convert is logged and skipped. Duplicates are removed, first occurrence wins.
    """
    if not isinstance(parsed, dict):
        logger.warning("Parsed CV is not an object (%s); no tags generated", type(parsed).__name__)
        return []
    tags: List[str] = []
    for key, converter in FIELD_CONVERTERS:
        value = parsed.get(key)
        if value in (None, "", [], {}):
            continue
        try:
            tags.extend(converter(value))
        except Exception as e:
            logger.exception("Could not generate tags for %s: %s", key, e)
    return list(dict.fromkeys(tags))
