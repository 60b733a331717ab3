from shortlist.config import MAX_QUERY_CHARS
from shortlist.normalize import (
    clamp_query,
    contains_either,
    fold_ascii,
    keywords,
    normalize_category,
    normalize_title,
    shared_keyword_count,
)


def test_normalize_category_strips_punctuation_and_case():
    assert normalize_category("  Home & Kitchen! ") == "home  kitchen"
    assert normalize_category("Electronics") == "electronics"


def test_normalize_title_collapses_whitespace():
    assert normalize_title("  Home & Kitchen! ") == "home kitchen"
    assert normalize_title("Sony   WH-1000XM5\tHeadphones") == "sony wh1000xm5 headphones"


def test_normalize_handles_none_and_non_strings():
    assert normalize_title(None) == ""
    assert normalize_category(None) == ""
    assert normalize_title(12345) == "12345"


def test_fold_ascii_keeps_accented_letters_as_ascii():
    assert fold_ascii("Café Crème") == "Cafe Creme"
    assert normalize_title("Café Crème") == "cafe creme"


def test_keywords_drop_short_tokens():
    assert keywords("a usb c hub") == ["usb", "hub"]


def test_shared_keyword_count_counts_distinct_tokens():
    assert shared_keyword_count("usb hub usb", "usb cable") == 1
    assert shared_keyword_count("wireless earbuds", "earbuds wireless pro") == 2
    assert shared_keyword_count("ab cd", "cd ab") == 0


def test_contains_either_is_symmetric():
    assert contains_either("wireless earbuds", "earbuds")
    assert contains_either("earbuds", "wireless earbuds")
    assert not contains_either("earbuds", "headphones")


def test_clamp_query_strips_angle_brackets_and_caps_length():
    assert clamp_query("  <b>earbuds</b> ") == "bearbuds/b"
    assert clamp_query(None) == ""
    assert len(clamp_query("x" * (MAX_QUERY_CHARS + 50))) == MAX_QUERY_CHARS


def test_repeated_tokens_count_once():
    assert shared_keyword_count("apple apple case", "apple ipad") == 1
