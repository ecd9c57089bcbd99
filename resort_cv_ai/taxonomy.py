"""
Closed recruiting taxonomy for resort / hospitality CVs.

This is configuration data: the CV parser prompt is generated from it and the
tag generator maps parser output back onto it. Edit here; do not hardcode
vocabulary elsewhere.
"""

from typing import Dict, List

# Top-level keys of the parser JSON
AGE_KEY = "Age"
LANGUAGES_KEY = "Languages"
EDUCATION_KEY = "Education"
EXPERIENCE_KEY = "Experience"
TECHNICAL_SKILLS_KEY = "Technical Skills"
SOFT_SKILLS_KEY = "Soft Skills"
CERTIFICATIONS_KEY = "Certifications"
DEMOGRAPHICS_KEY = "Demographics"

EDUCATION_LEVEL_KEY = "Education Level"
FIELD_RELEVANCE_KEY = "Field Relevance"
DURATION_KEY = "Duration"
ESTABLISHMENT_TYPE_KEY = "Establishment Type"
POSITION_LEVEL_KEY = "Position Level"

AGE_BRACKETS: List[str] = ["under 18", "18-22", "23-28", "29-35", "36-45", "46+"]

LANGUAGE_OPTIONS: List[str] = [
    "english", "russian", "german", "arabic", "french", "spanish", "chinese",
    "ukrainian", "turkish", "dutch", "italian", "portuguese", "hebrew",
    "polish", "romanian",
]

PROFICIENCY_LEVELS: List[str] = ["basic", "intermediate", "advanced", "fluent", "native"]

EDUCATION_LEVELS: List[str] = [
    "high school", "associate degree", "bachelor's degree", "master's degree",
    "phd", "vocational certificate", "professional diploma", "industry certification",
]

FIELD_RELEVANCE: List[str] = [
    "hospitality management", "tourism", "culinary arts", "business administration",
    "finance/accounting", "engineering", "it/computer science", "recreation management",
    "marketing/communications", "human resources", "health & safety", "sports & leisure",
    "environmental management", "spa & wellness", "landscape architecture",
]

EXPERIENCE_DURATIONS: List[str] = [
    "no experience", "less than 1 year", "1-3 years", "3-5 years", "5-10 years", "10+ years",
]

ESTABLISHMENT_TYPES: List[str] = [
    "luxury resort", "business hotel", "restaurant/bar", "tour operator", "cruise line",
    "event company", "corporate office", "chain hotel", "boutique property", "casino",
    "golf resort", "thermal/wellness resort", "all-inclusive resort", "timeshare property",
]

POSITION_LEVELS: List[str] = [
    "entry level", "specialist", "supervisor", "manager", "department head",
    "director", "executive",
]

TECHNICAL_SKILL_CATEGORIES: Dict[str, List[str]] = {
    "Front Office / Reservation / CRM & Call Center": [
        "pms systems (opera, protel, etc.)", "booking engines (booking.com, expedia, etc.)",
        "payment processing systems", "crm software", "call center technologies",
        "upselling techniques", "channel management", "yield management",
        "guest loyalty programs", "check-in/check-out procedures",
        "foreign exchange handling", "complaint management",
    ],
    "Housekeeping / Laundry / Flower Center": [
        "inventory management", "chemical handling", "quality control",
        "industrial equipment operation", "room inspection", "sustainability practices",
        "linen management", "deep cleaning protocols", "floral arrangement",
        "decorative displays", "amenity setup", "vip room preparation",
    ],
    "F&B / Kitchen / Dishroom": [
        "food safety certification", "culinary techniques", "menu planning", "cost control",
        "pos systems", "specialty cuisine knowledge", "beverage service", "banquet operations",
        "buffet management", "à la carte service", "restaurant reservation systems",
        "allergen management", "wine knowledge", "cocktail preparation",
    ],
    "Finance / Accounting / Purchasing": [
        "accounting software", "budgeting", "financial analysis", "procurement systems",
        "vendor management", "audit procedures", "tax compliance", "payroll processing",
        "cost allocation", "asset management", "financial reporting", "inventory valuation",
        "contract negotiation", "expense tracking",
    ],
    "IT / Technical Service": [
        "network administration", "system maintenance", "software development",
        "database management", "audio/visual equipment", "iot solutions", "cctv systems",
        "key card systems", "energy management systems", "telecommunications",
        "technical support", "it security", "smart room technology", "preventive maintenance",
    ],
    "Entertainment / Kids Club / SPA": [
        "activity planning", "performance skills", "child safety", "treatment protocols",
        "equipment operation", "booking management", "theme events", "stage production",
        "music/dj skills", "sports instruction", "animation programs", "massage techniques",
        "beauty treatments", "fitness instruction",
    ],
    "HR / Quality": [
        "recruitment tools", "training & development", "performance management",
        "quality assurance systems", "audit experience", "compliance knowledge",
        "employee relations", "labor law", "benefits administration", "onboarding processes",
        "talent management", "diversity & inclusion", "hris systems",
        "guest satisfaction measurement",
    ],
    "Marketing / Sales": [
        "crm systems", "digital marketing tools", "content creation", "analytics",
        "contract negotiation", "revenue management", "social media management",
        "email marketing", "seo/sem knowledge", "brand management", "corporate sales",
        "mice sales", "loyalty programs", "public relations",
    ],
    "Grounds": [
        "landscape design", "equipment operation", "irrigation systems", "plant knowledge",
        "sustainability practices", "pest management", "turf management", "seasonal planning",
        "water conservation", "ornamental care", "tree maintenance", "chemical application",
        "beach maintenance", "pool area management",
    ],
}

SOFT_SKILLS: List[str] = [
    "guest communication", "problem resolution", "team leadership", "conflict management",
    "time management", "attention to detail", "cultural sensitivity", "adaptability",
    "work under pressure", "emotional intelligence", "decision making", "initiative",
    "creativity", "strategic thinking", "negotiation", "active listening",
    "crisis management", "delegation", "coaching/mentoring", "multitasking",
]

CERTIFICATIONS: List[str] = [
    "food safety", "first aid/cpr", "lifeguard certification", "fire safety",
    "security certification", "spa/wellness certifications",
    "sommelier/beverage certifications", "revenue management", "environmental management",
    "health & safety", "project management", "it certifications", "guest service gold",
    "financial certifications", "hospitality management certification",
    "training certification", "pool operations", "fitness instruction",
    "language certifications", "eco-certification",
]


def _bullets(values: List[str], indent: str = "") -> str:
    return "\n".join(f"{indent}- {v}" for v in values)


def build_parser_prompt(current_year: int) -> str:
    """Render the CV parser system prompt from the taxonomy."""
    skill_sections = "\n\n".join(
        f"### {category}\n{_bullets(skills)}"
        for category, skills in TECHNICAL_SKILL_CATEGORIES.items()
    )
    return f"""You are an expert CV analyzer for a resort. Extract relevant information from the CV and categorize it using ONLY the tags listed below.

## 0. {DEMOGRAPHICS_KEY}
- firstName, lastName, email, phone, birthdate (YYYY-MM-DD if possible)

## 1. {AGE_KEY}
{_bullets(AGE_BRACKETS)}

## 2. {LANGUAGES_KEY}
Language options:
{_bullets(LANGUAGE_OPTIONS)}
Proficiency levels:
{_bullets(PROFICIENCY_LEVELS)}

## 3. {EDUCATION_KEY}
{EDUCATION_LEVEL_KEY}:
{_bullets(EDUCATION_LEVELS)}
{FIELD_RELEVANCE_KEY}:
{_bullets(FIELD_RELEVANCE)}

## 4. {EXPERIENCE_KEY}
{DURATION_KEY}:
{_bullets(EXPERIENCE_DURATIONS)}
{ESTABLISHMENT_TYPE_KEY}:
{_bullets(ESTABLISHMENT_TYPES)}
{POSITION_LEVEL_KEY}:
{_bullets(POSITION_LEVELS)}

## 5. {TECHNICAL_SKILLS_KEY}

{skill_sections}

## 6. {SOFT_SKILLS_KEY}
{_bullets(SOFT_SKILLS)}

## 7. {CERTIFICATIONS_KEY}
{_bullets(CERTIFICATIONS)}

Return only a JSON object (no markdown, no code block) with this shape:
{{
  "{DEMOGRAPHICS_KEY}": {{"firstName": "", "lastName": "", "email": "", "phone": "", "birthdate": ""}},
  "{AGE_KEY}": "age in years or one age bracket",
  "{LANGUAGES_KEY}": {{"<language>": "<proficiency level>"}},
  "{EDUCATION_KEY}": {{"{EDUCATION_LEVEL_KEY}": "", "{FIELD_RELEVANCE_KEY}": [""]}},
  "{EXPERIENCE_KEY}": {{"{DURATION_KEY}": "", "{ESTABLISHMENT_TYPE_KEY}": [""], "{POSITION_LEVEL_KEY}": ""}},
  "{TECHNICAL_SKILLS_KEY}": {{"<skill category>": [""]}},
  "{SOFT_SKILLS_KEY}": [""],
  "{CERTIFICATIONS_KEY}": [""]
}}

Notes:
- Tags must be in English.
- Do not add tags or categories other than the ones listed.
- If you cannot find a tag, leave it blank. Do not guess.
- It is {current_year}; calculate ages accordingly. If you cannot find the age, leave it blank.
- Calculate experience in years.
- Always make your best effort to extract demographic information, even if incomplete."""
