from s3wrapper._glob import is_pattern
from s3wrapper._glob import to_pattern

import pytest


class TestIsPattern:
    def test_wildcard(self):
        assert is_pattern("*.bin")
        assert is_pattern("random_*")

    def test_plain(self):
        assert not is_pattern("random.bin")
        assert not is_pattern("")
        assert not is_pattern(None)


class TestToPattern:
    def test_no_wildcard_is_not_compiled(self):
        assert to_pattern("random.bin") is None
        assert to_pattern("   ") is None
        assert to_pattern(None) is None

    def test_extension(self):
        pattern = to_pattern("*.bin")
        assert pattern.match("random.bin")
        assert not pattern.match("random.binx")
        assert not pattern.match("random.bi")

    def test_anchored(self):
        pattern = to_pattern("random_*.bin")
        assert pattern.match("random_100.bin")
        assert pattern.match("random_.bin")
        assert not pattern.match("zero_100.bin")
        assert not pattern.match("xrandom_100.bin")

    def test_consecutive_wildcards_collapse(self):
        assert to_pattern("a**b").pattern == to_pattern("a*b").pattern
        for name in ("ab", "axxb", "a*b"):
            assert to_pattern("a***b").match(name)

    def test_leading_and_trailing_wildcards(self):
        assert to_pattern("*").pattern == "^.*$"
        assert to_pattern("*x*").pattern == "^.*x.*$"

    @pytest.mark.parametrize("literal", ["a.b", "a+b", "(a)", "a[1]", "a?b", "$a^"])
    def test_literals_are_escaped(self, literal):
        pattern = to_pattern(literal + "*")
        assert pattern.match(literal + "tail")
        assert not pattern.match("x" + literal)

    def test_whitespace_trimmed(self):
        assert to_pattern("  *.jpg ").match("black.jpg")
