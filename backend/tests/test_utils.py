"""
Rubrik Review Desk — Text utility tests
"""

from app.utils.text_processing import build_slug, slugify, truncate_text


class TestSlugify:
    def test_lowercases_and_hyphenates(self):
        assert slugify("Budget Talks Resume") == "budget-talks-resume"

    def test_folds_accents(self):
        assert slugify("Élection présidentielle à Alger") == "election-presidentielle-a-alger"

    def test_collapses_separators(self):
        assert slugify("  a -- b __ c  ") == "a-b-c"

    def test_empty_string(self):
        assert slugify("") == ""
        assert slugify("!!!") == ""


class TestBuildSlug:
    def test_supplied_slug_is_normalised_without_suffix(self):
        assert build_slug("My Custom Slug", "Ignored title") == "my-custom-slug"

    def test_derived_slug_has_random_suffix(self):
        slug = build_slug(None, "Budget talks resume")
        base, suffix = slug.rsplit("-", 1)
        assert base == "budget-talks-resume"
        assert len(suffix) == 6
        assert suffix.isalnum()

    def test_derived_slugs_differ(self):
        assert build_slug(None, "Same title") != build_slug(None, "Same title")

    def test_untitled_falls_back(self):
        assert build_slug("", "???").startswith("article-")

    def test_respects_max_length(self):
        slug = build_slug(None, "word " * 200, max_length=50)
        assert len(slug) <= 50


class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("short", 50) == "short"

    def test_cuts_at_word_boundary(self):
        text = "alpha beta gamma delta epsilon zeta eta theta"
        result = truncate_text(text, 30)
        assert result.endswith("...")
        assert len(result) <= 33

    def test_none(self):
        assert truncate_text(None) == ""
