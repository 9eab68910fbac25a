from __future__ import annotations

import pytest

from fastbite.ordering import nlp
from fastbite.ordering.assistant import ChatAssistant, is_direct_match, rank_direct_first, recommendation_text
from fastbite.ordering.recommend import UserProfile, recommend, score_product
from fastbite.schemas import Product
from fastbite.storage import CHAT_HISTORY_KEY

from conftest import product_json

pytestmark = pytest.mark.anyio


# -------------------
# Keyword analysis
# -------------------
@pytest.mark.parametrize(
    "text, intent",
    [
        ("Gợi ý cho tôi món gì ngon", "recommendation"),
        ("Tôi muốn ăn gà rán", "recommendation"),
        ("Có sản phẩm nào mới không", "product_query"),
        ("Kiểm tra đơn hàng của tôi", "order_status"),
        ("Xin chào", "general"),
    ],
)
def test_detect_intent(text, intent):
    assert nlp.detect_intent(text) == intent


def test_classify_message_tiers():
    assert nlp.classify_message("Tôi thích đồ cay")["intent"] == "recommendation"
    assert nlp.classify_message("tôi muốn ăn gì đó")["confidence"] == nlp.CONFIDENCE["food_recommendation"]
    found = nlp.classify_message("cho xem pizza", categories=["Pizza", "Burger"])
    assert found["intent"] == "category_search"
    assert found["entities"]["category"] == "Pizza"
    assert nlp.classify_message("hello there")["intent"] == "general"


def test_extract_entities():
    entities = nlp.extract_entities("bữa sáng món cay")
    assert entities["time_of_day"] == "breakfast"
    assert entities["taste"] == "spicy"


def test_analyze_message_spice_and_diet():
    result = nlp.analyze_message("Can you recommend a vegetarian burger, not spicy please")
    assert result["intent"] == "asking_for_recommendations"
    assert result["preferences"] == {"food_types": ["burger"], "dietary": ["vegetarian"], "spice_level": "mild"}
    assert nlp.analyze_message("something hot")["preferences"]["spice_level"] == "hot"


def test_strip_filler_prefix():
    assert nlp.strip_filler_prefix("Hey can I get a burger") == "a burger"
    assert nlp.strip_filler_prefix("burger") == "burger"


def test_fuzzy_best_key():
    assert nlp.fuzzy_best_key(["burgers", "pizza"], "burger") == "burgers"
    assert nlp.fuzzy_best_key(["burgers", "pizza"], "sushi") is None


# -------------------
# Scoring
# -------------------
def _product(product_id: int, **kw) -> Product:
    return Product.model_validate(product_json(product_id, **kw))


def test_score_without_signals_is_popular():
    scored = score_product(_product(1))
    assert scored.confidence == 0.5
    assert scored.reasoning == "Popular with other customers"


def test_direct_match_outranks_history():
    products = [
        _product(1, name="Cheese Burger"),
        _product(2, name="Fried Chicken", categories=[{"id": 4, "name": "Chicken"}]),
    ]
    profile = UserProfile(viewed_ids=[2])
    ranked = recommend(products, profile, query="burger")
    assert ranked[0].product.id == 1
    assert ranked[0].reasoning == "Matches your request"
    assert ranked[0].confidence <= 0.99


def test_recommend_filters_unavailable_and_diet():
    products = [
        _product(1, stock=0),
        _product(2, isVegetarian=True),
        _product(3),
    ]
    ranked = recommend(products, UserProfile(dietary=["vegetarian"]))
    assert [s.product.id for s in ranked] == [2]


# -------------------
# Assistant
# -------------------
def test_direct_match_rules():
    assert is_direct_match({"confidence": 0.95})
    assert is_direct_match({"confidence": 0.2, "reasoning": "Matches your request"})
    assert not is_direct_match({"confidence": 0.9, "reasoning": "Popular"})
    ranked = rank_direct_first([{"id": 1, "confidence": 0.6}, {"id": 2, "confidence": 0.95}])
    assert [p["id"] for p in ranked] == [2, 1]


def test_recommendation_text_variants():
    direct = [{"confidence": 0.95}]
    assert recommendation_text(
        {"queryAnalysis": {"exactProductMatch": True, "primaryProductIntent": "Zinger"}}, direct
    ) == "Here is the Zinger you asked for."
    assert recommendation_text({"isNewUser": True}, [{"confidence": 0.5}]).startswith("Here are some popular")
    assert recommendation_text({"reasonings": ["recent views"]}, [{"confidence": 0.5}]) == (
        "Suggested based on your recent views."
    )


async def test_assistant_recommendation_carousel(storage, api, backend):
    backend.add(
        "GET",
        "/chat/recommendations",
        {
            "success": True,
            "products": [
                {"id": 1, "name": "Cola", "price": 10000, "confidence": 0.6},
                {"id": 2, "name": "Burger", "price": 50000, "confidence": 0.97},
            ],
            "reasonings": [],
        },
    )
    assistant = ChatAssistant(api, storage, max_history=3)

    text, metadata = await assistant.reply("Gợi ý món burger")

    assert metadata["type"] == "product_carousel"
    assert [p["id"] for p in metadata["products"]] == [2, 1]
    assert text == "These dishes best match your request:"
    assert [m["role"] for m in storage.get_json(CHAT_HISTORY_KEY)] == ["user", "model"]


async def test_assistant_passthrough_and_history_cap(storage, api, backend):
    backend.add("POST", "/chat/message", {"success": True, "response": "Hi there"})
    assistant = ChatAssistant(api, storage, max_history=3)

    for _ in range(3):
        assert await assistant.reply("xin chào") == ("Hi there", None)

    assert len(assistant.history) == 3
    assert await assistant.reply("   ") == ("", None)
    assistant.reset()
    assert assistant.history == []
