from shortlist import config, resolver
from shortlist.pipeline_types import ProviderSearchResult, SearchConstraints, SearchIntent
from shortlist.providers import FileProvider, HttpProvider
from shortlist.resolver import ProviderResolver


class FakeProvider:
    kind = "file"

    def __init__(self, name, store, available=True):
        self.name = name
        self.store = store
        self._available = available

    def is_available(self):
        return self._available

    def search(self, intent):
        return ProviderSearchResult(provider=self.name)


def test_available_providers_sorted_by_priority():
    r = ProviderResolver(
        providers=[FakeProvider("shein-file", "shein"), FakeProvider("custom", "acme"), FakeProvider("amazon-file", "amazon")],
    )
    assert [p.name for p in r.available_providers()] == ["amazon-file", "shein-file", "custom"]
    assert r.names == ["amazon-file", "shein-file", "custom"]


def test_unavailable_providers_are_skipped():
    r = ProviderResolver(providers=[FakeProvider("amazon-file", "amazon", available=False), FakeProvider("shein-file", "shein")])
    assert [p.name for p in r.available_providers()] == ["shein-file"]
    assert r.has_available_providers()
    assert not ProviderResolver(providers=[]).has_available_providers()


def test_store_constraint_filters_providers():
    r = ProviderResolver(providers=[FakeProvider("amazon-file", "amazon"), FakeProvider("shein-file", "shein")])
    intent = SearchIntent(query="dress", constraints=SearchConstraints(stores=("SHEIN",)))
    assert [p.name for p in r.available_providers(intent)] == ["shein-file"]
    assert [p.name for p in r.providers_for_store("Amazon")] == ["amazon-file"]


def test_duplicate_provider_names_keep_first():
    first = FakeProvider("amazon-file", "amazon")
    r = ProviderResolver(providers=[first, FakeProvider("amazon-file", "amazon")])
    assert r.get_provider("amazon-file") is first
    assert r.get_provider("missing") is None


def test_custom_priorities_and_reload():
    r = ProviderResolver(providers=[FakeProvider("a", "x"), FakeProvider("b", "y")], priorities={"b": 1, "a": 2})
    assert r.names == ["b", "a"]
    r.reload([FakeProvider("c", "z")])
    assert r.names == ["c"]


def test_default_providers_follow_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "ENABLE_AMAZON_FILE", True)
    monkeypatch.setattr(config, "ENABLE_SHEIN_FILE", False)
    monkeypatch.setattr(config, "AMAZON_DATA_PATH", tmp_path / "amazon.json")
    monkeypatch.setattr(config, "AMAZON_API_URL", "")
    monkeypatch.setattr(config, "SHEIN_API_URL", "https://api.example.com/shein")

    built = resolver.default_providers()
    assert [p.name for p in built] == ["amazon-file", "shein-api"]
    assert isinstance(built[0], FileProvider)
    assert isinstance(built[1], HttpProvider)

    # the data file does not exist, so only the API provider is available
    assert [p.name for p in ProviderResolver().available_providers()] == ["shein-api"]
