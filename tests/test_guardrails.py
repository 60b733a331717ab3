from shortlist.guardrails import (
    DEFAULT_GUARDRAILS,
    CategoryThresholds,
    GuardrailConfig,
    apply_guardrails,
    platform_trust,
    recommended_only,
    thresholds_for,
)
from shortlist.pipeline_types import BEST_VALUE, CandidateRecord, ScoredCandidate


def _sc(id, price=100.0, store="bestbuy", rating=4.5, reviews=100, badge=None, **kw):
    rec = CandidateRecord(id=id, name=f"Item {id}", price=price, store=store, rating=rating, review_count=reviews, **kw)
    return ScoredCandidate(record=rec, score=0.5, badge=badge)


def test_platform_trust_levels():
    assert platform_trust("Amazon", DEFAULT_GUARDRAILS) == "trusted"
    assert platform_trust("unknown", DEFAULT_GUARDRAILS) == "new"
    assert platform_trust("shein", DEFAULT_GUARDRAILS) == "standard"


def test_thresholds_for_trusted_platform_in_category():
    t = thresholds_for(CandidateRecord(id="1", name="x", price=1, store="amazon", category="Electronics"), DEFAULT_GUARDRAILS)
    assert round(t.min_rating, 2) == 4.0
    assert t.min_review_count == 20
    t = thresholds_for(CandidateRecord(id="1", name="x", price=1, store="amazon", category="fashion"), DEFAULT_GUARDRAILS)
    assert t.min_review_count == 1
    # shared config is not modified
    assert DEFAULT_GUARDRAILS.categories["electronics"].min_rating == 4.1


def test_thresholds_for_stricter_platform():
    t = thresholds_for(CandidateRecord(id="1", name="x", price=1, store="third-party"), DEFAULT_GUARDRAILS)
    assert round(t.min_rating, 2) == 4.2
    assert t.min_review_count == 20


def test_good_product_is_recommended_with_tags():
    [v] = apply_guardrails([_sc("a", store="amazon", shipping_days=1, shipping_price=0, brand="Acme")])
    assert v.is_recommended and not v.is_risky
    assert v.risk_reasons == []
    assert v.reasoning_tags == ["High Rating", "Trusted Seller", "Express Shipping", "Free Shipping", "Brand: Acme"]


def test_lone_risky_product_is_still_recommended():
    [v] = apply_guardrails([_sc("a", rating=2.0, reviews=1)])
    assert v.is_recommended
    assert v.is_risky
    assert len(v.risk_reasons) == 2


def test_price_outlier_flagged_and_good_deal_tagged():
    verdicts = apply_guardrails([_sc("a"), _sc("b"), _sc("c", price=30.0), _sc("d", price=70.0)])
    # median of 100, 100, 30, 70 is 85
    assert not verdicts[2].is_recommended
    assert any("median" in r for r in verdicts[2].risk_reasons)
    assert "Good Deal" in verdicts[3].reasoning_tags
    assert verdicts[0].is_recommended


def test_price_outlier_needs_three_products():
    verdicts = apply_guardrails([_sc("a"), _sc("b", price=10.0)])
    assert all(not v.is_risky for v in verdicts)


def test_new_platform_is_risky():
    verdicts = apply_guardrails([_sc("a", store="unknown", rating=4.9, reviews=500), _sc("b")])
    assert verdicts[0].is_risky
    assert any("trusted seller list" in r for r in verdicts[0].risk_reasons)


def test_badge_label_tag():
    [v] = apply_guardrails([_sc("a", badge=BEST_VALUE)])
    assert "Best Value" in v.reasoning_tags


def test_missing_rating_and_reviews_count_as_zero():
    verdicts = apply_guardrails([_sc("a", rating=None, reviews=None), _sc("b")])
    assert verdicts[0].is_risky
    assert "Rating 0.0/5" in verdicts[0].risk_reasons[0]


def test_custom_config():
    cfg = GuardrailConfig(global_thresholds=CategoryThresholds(min_rating=1.0, min_review_count=0))
    verdicts = apply_guardrails([_sc("a", rating=1.5, reviews=0), _sc("b")], cfg)
    assert not verdicts[0].is_risky


def test_apply_guardrails_empty_and_recommended_only():
    assert apply_guardrails([]) == []
    cands = [_sc("a"), _sc("b", rating=1.0)]
    verdicts = apply_guardrails(cands)
    assert [c.record.id for c in recommended_only(cands, verdicts)] == ["a"]
