"""Tests for literal suffix, directive and attribute matchers."""
import pytest

from test_utils import feature_ids, matches_for


class TestSizeSuffix:
    @pytest.mark.parametrize("literal", ["42uz", "7z", "0x10ZU", "1'000uz", "0b101z"])
    def test_size_suffixes(self, literal):
        assert feature_ids(f"auto n = {literal};") == ["size-literal-suffix"]

    @pytest.mark.parametrize("literal", ["42", "42u", "42ul", "42LL", "0x1F"])
    def test_other_integer_suffixes(self, literal):
        assert feature_ids(f"auto n = {literal};") == []

    def test_location(self):
        (match,) = matches_for("auto n = 42uz;", "size-literal-suffix")
        assert (match.location.line, match.location.column) == (1, 10)
        assert match.matched_text == "42uz"


class TestExtendedFloatSuffix:
    @pytest.mark.parametrize("literal", ["1.5f16", "2.0bf16", "3e2f64", ".5f32", "1.0F128", "0x1.8p1f16"])
    def test_extended_suffixes(self, literal):
        assert feature_ids(f"auto x = {literal};") == ["extended-floating-literal-suffix"]

    @pytest.mark.parametrize("literal", ["1.5", "1.5f", "1.5L", "1e10"])
    def test_standard_suffixes(self, literal):
        assert feature_ids(f"auto x = {literal};") == []


class TestDirectives:
    @pytest.mark.parametrize("directive", ["#elifdef FOO", "#elifndef BAR", "#  elifdef FOO"])
    def test_elifdef(self, directive):
        src = f"#ifdef X\n{directive}\n#endif\n"
        assert feature_ids(src) == ["elifdef-directive"]

    def test_warning(self):
        src = """
        #warning "this header is deprecated"
        int x;
        """
        assert feature_ids(src) == ["warning-directive"]
        (match,) = matches_for(src, "warning-directive")
        assert match.matched_text == '#warning "this header is deprecated"'

    @pytest.mark.parametrize(
        "directive",
        ["#elif defined(FOO)", "#error stop", "#pragma warning(disable: 4996)", "#define warning 1"],
    )
    def test_other_directives(self, directive):
        src = f"#if X\n{directive}\n#endif\n"
        assert feature_ids(src) == []


class TestAssumeAttribute:
    def test_assume(self):
        src = """
        void f(int n) {
            [[assume(n > 0)]];
        }
        """
        assert feature_ids(src) == ["assume-attribute"]
        (match,) = matches_for(src, "assume-attribute")
        assert match.matched_text == "assume(n > 0)"

    def test_in_attribute_list(self):
        src = """
        void f(int n) {
            [[gnu::cold, assume(n != 0)]];
        }
        """
        assert feature_ids(src) == ["assume-attribute"]

    def test_other_attributes(self):
        src = """
        [[nodiscard]] int f();
        void g(int n) {
            [[likely]] if (n) {}
        }
        """
        assert feature_ids(src) == []

    def test_using_prefix(self):
        src = """
        void f(int n) {
            [[using gnu: assume(n)]];
        }
        """
        assert feature_ids(src) == []
