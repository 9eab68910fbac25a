# fastbite/ordering/nlp.py
from __future__ import annotations

import difflib
import re
from typing import Any, Dict, Iterable, List, Optional

# ----------------------------
# Vocabulary (Vietnamese shop chat, English fallbacks)
# Substring matching only; order of the checks below matters.
# ----------------------------
RECOMMENDATION_WORDS = ["gợi ý", "đề xuất", "món gì", "món nào", "recommend", "recomm"]
PRODUCT_QUERY_WORDS = ["sản phẩm", "món", "đồ ăn", "thức ăn", "thức uống", "đồ uống", "nước"]
ORDER_STATUS_WORDS = ["đơn hàng", "trạng thái", "theo dõi"]

PREFERENCE_WORDS = [
    "tôi thích", "tôi ưa thích", "tôi hay", "thích gì",
    "biết tôi thích", "sở thích", "tôi thường", "tôi hay dùng",
    "tôi hay mua", "tôi hay ăn", "tôi hay uống",
]
FOOD_RECOMMENDATION_WORDS = [
    "muốn ăn", "thích ăn", "gợi ý món", "đề xuất món",
    "món ngon", "nên ăn gì", "ăn gì ngon", "món gì ngon",
    "có món gì", "món tôi thích", "món phù hợp",
]
GENERAL_RECOMMENDATION_WORDS = [
    "đề xuất", "gợi ý", "recommend", "món gì", "có món",
    "ăn gì", "món nào", "ngon không", "có gì ngon",
]
SEARCH_WORDS = ["tìm", "kiếm", "search", "lookup", "món", "đồ ăn"]

_KEY_PHRASES = ["muốn ăn", "thích ăn", "món ngon", "gợi ý món"]
_STOP_WORDS = {"đang", "không", "được", "những", "nhưng", "rằng", "hoặc", "cho", "các", "với"}

_TIME_OF_DAY = [
    ("breakfast", ["sáng", "breakfast", "morning"]),
    ("lunch", ["trưa", "lunch"]),
    ("dinner", ["tối", "dinner", "evening"]),
]
_TASTES = [
    ("spicy", ["cay", "ớt", "spicy"]),
    ("sweet", ["ngọt", "đường", "sweet"]),
    ("salty", ["mặn", "muối", "salty"]),
    ("sour", ["chua", "chanh", "sour"]),
    ("bitter", ["đắng", "bitter"]),
    ("umami", ["umami", "đậm đà"]),
]

CONFIDENCE = {
    "preference": 0.85,
    "food_recommendation": 0.88,
    "recommendation": 0.82,
    "category_search": 0.7,
    "product_search": 0.75,
    "general": 0.5,
}

# English shop assistant vocabulary
_EN_INTENTS = [
    ("asking_for_recommendations", ["recommend", "suggestion", "what should i", "what do you recommend"]),
    ("looking_for_food", ["hungry", "want to eat", "looking for"]),
    ("asking_about_menu", ["menu", "what do you have", "what's available"]),
]
_EN_FOOD_TYPES = [
    ("burger", ["burger"]),
    ("pizza", ["pizza"]),
    ("chicken", ["chicken"]),
    ("drink", ["drink", "beverage"]),
    ("dessert", ["dessert", "sweet"]),
]
_EN_DIETARY = [
    ("vegetarian", ["vegetarian"]),
    ("vegan", ["vegan"]),
    ("gluten-free", ["gluten-free", "gluten free"]),
]

_PUNCT_RE = re.compile(r"[^\w\s]+")

_LEADING_FILLER_RE = re.compile(
    r"^\s*(?:"
    r"hi|hello|hey|xin chào|chào bạn|chào|"
    r"please|pls|plz|"
    r"i\s*would\s*like|i'?d\s*like|can\s*i\s*get|could\s*i\s*get|"
    r"can\s*you|could\s*you|give\s*me|i\s*want"
    r")\b[,\s]*",
    re.IGNORECASE,
)


def contains_any(text: str, words: Iterable[str]) -> bool:
    return any(w in text for w in words)


def _first_match(text: str, table: List[tuple]) -> Optional[str]:
    for label, words in table:
        if contains_any(text, words):
            return label
    return None


def basic_normalize(s: str) -> str:
    """
    - lower
    - strip punctuation to spaces
    - collapse whitespace
    """
    s = (s or "").strip().lower()
    s = _PUNCT_RE.sub(" ", s)
    return re.sub(r"\s+", " ", s).strip()


def strip_filler_prefix(raw: str) -> str:
    """
    Removes greetings and request filler at the start:
      "Hey can I get a burger" -> "a burger"
    """
    s = (raw or "").strip()
    while True:
        s2 = _LEADING_FILLER_RE.sub("", s).strip()
        if s2 == s:
            return s
        s = s2


# ----------------------------
# Intent detection
# ----------------------------
def detect_intent(text: str) -> str:
    """recommendation | product_query | order_status | general"""
    t = (text or "").lower()
    if contains_any(t, RECOMMENDATION_WORDS) or ("muốn" in t and "ăn" in t):
        return "recommendation"
    if contains_any(t, PRODUCT_QUERY_WORDS):
        return "product_query"
    if contains_any(t, ORDER_STATUS_WORDS):
        return "order_status"
    return "general"


def extract_keywords(text: str) -> List[str]:
    """Key phrases first, then the remaining content words (longer than 3 chars)."""
    t = basic_normalize(text)
    vocab = set(RECOMMENDATION_WORDS + PREFERENCE_WORDS + FOOD_RECOMMENDATION_WORDS)
    phrases = [p for p in _KEY_PHRASES if p in t]
    words = [
        w for w in t.split(" ")
        if len(w) > 3 and w not in _STOP_WORDS and w not in vocab
    ]
    return phrases + words


def extract_entities(text: str) -> Dict[str, Any]:
    t = (text or "").lower()
    entities: Dict[str, Any] = {"keywords": extract_keywords(t)}
    time_of_day = _first_match(t, _TIME_OF_DAY)
    if time_of_day:
        entities["time_of_day"] = time_of_day
    taste = _first_match(t, _TASTES)
    if taste:
        entities["taste"] = taste
    return entities


def classify_message(text: str, categories: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Tiered classification, most specific first:
      preference question  -> recommendation      0.85
      food recommendation  -> food_recommendation 0.88
      recommendation words -> recommendation      0.82
      category name        -> category_search     0.7
      search words         -> product_search      0.75
      otherwise            -> general             0.5
    """
    t = (text or "").lower()
    entities = extract_entities(t)

    if contains_any(t, PREFERENCE_WORDS):
        return {"intent": "recommendation", "confidence": CONFIDENCE["preference"], "entities": entities}
    if contains_any(t, FOOD_RECOMMENDATION_WORDS):
        return {"intent": "food_recommendation", "confidence": CONFIDENCE["food_recommendation"], "entities": entities}
    if contains_any(t, GENERAL_RECOMMENDATION_WORDS):
        return {"intent": "recommendation", "confidence": CONFIDENCE["recommendation"], "entities": entities}

    for name in categories:
        if name and name.lower() in t:
            entities["category"] = name
            return {"intent": "category_search", "confidence": CONFIDENCE["category_search"], "entities": entities}

    if contains_any(t, SEARCH_WORDS):
        return {"intent": "product_search", "confidence": CONFIDENCE["product_search"], "entities": entities}
    return {"intent": "general", "confidence": CONFIDENCE["general"], "entities": entities}


def analyze_message(text: str) -> Dict[str, Any]:
    """
    English preference extraction for the storefront chat route:
      {"intent", "preferences": {"food_types", "dietary", "spice_level"}}
    """
    t = (text or "").lower()
    intent = _first_match(t, _EN_INTENTS) or "other"
    food_types = [label for label, words in _EN_FOOD_TYPES if contains_any(t, words)]
    dietary = [label for label, words in _EN_DIETARY if contains_any(t, words)]

    spice = "medium"
    if contains_any(t, ["not spicy", "mild"]):
        spice = "mild"
    elif contains_any(t, ["spicy", "hot"]):
        spice = "hot"

    return {
        "intent": intent,
        "preferences": {"food_types": food_types, "dietary": dietary, "spice_level": spice},
    }


# ----------------------------
# Fuzzy matching
# ----------------------------
def fuzzy_best_key(keys: List[str], query: str, cutoff: float = 0.72) -> Optional[str]:
    if not query or not keys:
        return None
    q = query.strip().lower()
    if q in keys:
        return q
    matches = difflib.get_close_matches(q, keys, n=1, cutoff=cutoff)
    return matches[0] if matches else None
