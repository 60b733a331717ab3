import json

from shortlist import pipeline
from shortlist.pipeline import gather_candidates, run_search, search_query
from shortlist.pipeline_types import (
    BEST_CHOICE,
    CandidateRecord,
    ExtractedProduct,
    ProviderSearchResult,
    SearchConstraints,
    SearchIntent,
)
from shortlist.providers import FileProvider
from shortlist.resolver import ProviderResolver


class StaticProvider:
    kind = "file"

    def __init__(self, name, store, records):
        self.name = name
        self.store = store
        self._records = records

    def is_available(self):
        return True

    def search(self, intent):
        return ProviderSearchResult(provider=self.name, products=list(self._records), total_results=len(self._records))


class BrokenProvider(StaticProvider):
    def search(self, intent):
        raise RuntimeError("backend down")


def _rec(id, store, **kw):
    base = dict(name="Wireless Earbuds", price=30.0, rating=4.5, review_count=500)
    base.update(kw)
    return CandidateRecord(id=id, store=store, **base)


def test_gather_candidates_skips_failing_provider():
    ok = StaticProvider("shein-file", "shein", [_rec("s1", "shein")])
    records = gather_candidates(SearchIntent(query="earbuds"), [BrokenProvider("amazon-file", "amazon", []), ok])
    assert [r.id for r in records] == ["s1"]


def test_run_search_end_to_end():
    amazon = StaticProvider("amazon-file", "amazon", [
        _rec("a1", "amazon", price=50.0, shipping_days=1),
        _rec("a2", "amazon", name="Garden Hose"),
    ])
    shein = StaticProvider("shein-file", "shein", [
        _rec("s1", "shein", price=20.0, shipping_days=9),
        _rec("s1", "shein", price=20.0),
        _rec("s2", "shein", price=35.0, rating=4.9, review_count=5000, shipping_price=0.0, shipping_days=3),
    ])
    intent = SearchIntent(query="wireless earbuds")
    resp = run_search(intent, [amazon, shein])

    ids = [r.id for r in resp.results]
    assert sorted(ids) == ["a1", "s1", "s2"]
    badges = [r.badge for r in resp.results if r.badge]
    assert len(badges) == len(set(badges))
    assert resp.results[0].badge == BEST_CHOICE
    assert resp.input_type == "keyword"
    # ordered by score
    scores = [r.score for r in resp.results]
    assert scores == sorted(scores, reverse=True)


def test_run_search_excludes_source_store_and_is_deterministic():
    amazon = StaticProvider("amazon-file", "amazon", [_rec("a1", "amazon")])
    shein = StaticProvider("shein-file", "shein", [_rec("s1", "shein"), _rec("s2", "shein", price=25.0)])
    intent = SearchIntent(
        query="Wireless Earbuds",
        extracted_product=ExtractedProduct(name="Wireless Earbuds", store="amazon"),
        input_type="url",
    )
    first = run_search(intent, [amazon, shein])
    assert all(r.store != "amazon" for r in first.results)
    assert run_search(intent, [amazon, shein]) == first


def test_run_search_no_results():
    resp = run_search(SearchIntent(query="earbuds"), [])
    assert resp.results == []


def test_search_query_with_file_providers(tmp_path):
    amazon_path = tmp_path / "amazon.json"
    amazon_path.write_text(json.dumps([
        {"asin": "A1", "title": "Wireless Earbuds Pro", "price": 49.99, "rating": 4.5, "reviews_count": 1200},
    ]), encoding="utf-8")
    shein_path = tmp_path / "shein.json"
    shein_path.write_text(json.dumps([
        {"goods_id": "S1", "goods_name": "Wireless Earbuds Touch", "sale_price": "12.99", "comment_rank": 4.1},
    ]), encoding="utf-8")
    resolver = ProviderResolver(providers=[
        FileProvider("amazon-file", "amazon", amazon_path),
        FileProvider("shein-file", "shein", shein_path),
    ])

    resp = search_query(
        "https://www.amazon.com/Wireless-Earbuds-Pro/dp/B0A1EARB01",
        resolver=resolver,
        fetch_pages=False,
    )
    assert resp.input_type == "url"
    assert resp.store == "amazon"
    assert [r.id for r in resp.results] == ["S1"]
    assert resp.results[0].badge == BEST_CHOICE

    resp = search_query("earbuds", SearchConstraints(max_price=20), resolver=resolver, fetch_pages=False)
    assert [r.id for r in resp.results] == ["S1"]


def test_search_query_uses_page_title(monkeypatch):
    monkeypatch.setattr(pipeline, "fetch_product_title", lambda url: "Floral Summer Dress")
    shein = StaticProvider("shein-file", "shein", [_rec("s1", "shein", name="Floral Summer Dress Ruffle")])
    resolver = ProviderResolver(providers=[shein])
    resp = search_query("https://www.amazon.com/dp/B0A1EARB01", resolver=resolver, fetch_pages=True)
    assert [r.id for r in resp.results] == ["s1"]


def test_main_prints_json(monkeypatch, capsys):
    shein = StaticProvider("shein-file", "shein", [_rec("s1", "shein")])
    monkeypatch.setattr(pipeline, "ProviderResolver", lambda: ProviderResolver(providers=[shein]))
    pipeline.main(["wireless earbuds", "--max_price", "100"])
    data = json.loads(capsys.readouterr().out)
    assert data["query"] == "wireless earbuds"
    assert [r["id"] for r in data["results"]] == ["s1"]
