import re

from app.services.slugs import generate_slug, normalize_slug, random_token, with_suffix

SLUG_RE = re.compile(r"^[a-z0-9_-]+$")


def test_generate_slug_from_latin_name():
    assert generate_slug("  My Cool Shop!  ") == "my-cool-shop"


def test_generate_slug_collapses_separators():
    assert generate_slug("Best__Deals -- Store") == "best-deals-store"
    assert generate_slug("-Dash-") == "dash"


def test_generate_slug_keeps_ascii_part_of_mixed_name():
    assert generate_slug("متجر Ahmad") == "ahmad"


def test_generate_slug_falls_back_for_arabic_name():
    slug = generate_slug("متجري")
    assert slug.startswith("shop-")
    assert len(slug) == len("shop-") + 5
    assert SLUG_RE.match(slug)


def test_generate_slug_falls_back_for_empty_name():
    assert generate_slug("").startswith("shop-")
    assert generate_slug("!!!").startswith("shop-")


def test_with_suffix_appends_three_chars():
    slug = with_suffix("shop")
    assert re.match(r"^shop-[a-z0-9]{3}$", slug)


def test_random_token_alphabet():
    token = random_token(50)
    assert len(token) == 50
    assert re.match(r"^[a-z0-9]+$", token)


def test_normalize_slug():
    assert normalize_slug("My Shop!") == "myshop"
    assert normalize_slug("Shop_2024-SA") == "shop_2024-sa"
    assert normalize_slug("متجر") == ""
