import pytest

from shortlist.config import AFFILIATE_DEFAULTS, AffiliatePlatform, ProductItem, SearchResponse
from shortlist.guardrails import GuardrailVerdict
from shortlist.mapping import map_results_to_response, to_api_item
from shortlist.pipeline_types import (
    BEST_CHOICE,
    CandidateRecord,
    ExtractedProduct,
    ScoredCandidate,
    SearchIntent,
)


def _sc(id, score=0.5, badge=None, **kw):
    rec = CandidateRecord(id=id, name=f" Item {id} ", price=10.0, store="shein", **kw)
    return ScoredCandidate(record=rec, score=score, badge=badge)


def _shein_platform(affiliate_id):
    base_url, template = AFFILIATE_DEFAULTS["shein"]
    return AffiliatePlatform(store="shein", base_url=base_url, affiliate_id=affiliate_id, link_template=template)


def test_to_api_item_copies_fields_and_verdict():
    verdict = GuardrailVerdict(is_recommended=False, is_risky=True, reasoning_tags=["Free Shipping"], risk_reasons=["low rating"])
    item = to_api_item(_sc("1", badge=BEST_CHOICE, rating=3.2, shipping_price=0.0), verdict)
    assert isinstance(item, ProductItem)
    assert item.id == "1"
    assert item.name == "Item 1"
    assert item.badge == BEST_CHOICE
    assert item.rating == 3.2
    assert item.is_recommended is False
    assert item.is_risky is True
    assert item.reasoning_tags == ["Free Shipping"]
    assert item.risk_reasons == ["low rating"]


def test_to_api_item_defaults_without_verdict():
    item = to_api_item(_sc("1", score=float("nan")))
    assert item.score == 0.0
    assert item.is_recommended is True
    assert item.reasoning_tags == []


def test_map_results_keeps_order_and_intent_fields():
    intent = SearchIntent(query="dress", extracted_product=ExtractedProduct(store="amazon"), input_type="url")
    ranked = [_sc("b", 0.9), _sc("a", 0.4)]
    resp = map_results_to_response("https://www.amazon.com/x", intent, ranked)
    assert isinstance(resp, SearchResponse)
    assert resp.query == "https://www.amazon.com/x"
    assert resp.input_type == "url"
    assert resp.store == "amazon"
    assert [r.id for r in resp.results] == ["b", "a"]


def test_map_results_rejects_misaligned_verdicts():
    intent = SearchIntent(query="dress")
    with pytest.raises(ValueError):
        map_results_to_response("dress", intent, [_sc("a")], [])


def test_affiliate_url_is_built_when_absent():
    platforms = {"shein": _shein_platform("aff1")}
    item = to_api_item(_sc("1", url="https://us.shein.com/Dress-p-10023451.html"), None, platforms)
    assert item.affiliate_url == "https://us.shein.com/product/10023451.html?aff=aff1"

    item = to_api_item(_sc("2", affiliate_url="https://partner.example/x"), None, platforms)
    assert item.affiliate_url == "https://partner.example/x"

    item = to_api_item(_sc("3"), None, platforms)
    assert item.affiliate_url == "https://us.shein.com/product/3.html?aff=aff1"

    assert to_api_item(_sc("4"), None, {}).affiliate_url is None


def test_map_results_reads_affiliate_settings_from_env(monkeypatch):
    monkeypatch.delenv("AFFILIATE_ENABLED", raising=False)
    monkeypatch.setenv("AFFILIATE_SHEIN_ID", "aff1")
    resp = map_results_to_response("dress", SearchIntent(query="dress"), [_sc("7")])
    assert resp.results[0].affiliate_url == "https://us.shein.com/product/7.html?aff=aff1"
