"""Tests for lambda declarator matchers."""
from test_utils import feature_ids, matches_for


class TestEnclosingInstanceCapture:
    def test_capture_with_object_parameter(self):
        src = """
        struct S {
            int v;
            auto get() {
                return [*this](this auto self) { return self.v; };
            }
        };
        """
        assert sorted(feature_ids(src)) == [
            "deduced-return-type-as-parameter",
            "enclosing-instance-value-capture",
        ]
        (match,) = matches_for(src, "enclosing-instance-value-capture")
        assert match.matched_text == "*this"
        assert match.location.line == 4

    def test_capture_among_others(self):
        src = """
        auto l = [=, *this](this auto&& self) { return 0; };
        """
        assert "enclosing-instance-value-capture" in feature_ids(src)

    def test_capture_without_object_parameter(self):
        src = """
        struct S {
            int v;
            auto get() {
                return [*this]() { return v; };
            }
        };
        """
        assert feature_ids(src) == []


class TestParameterlessSpecifiers:
    def test_mutable(self):
        src = """
        auto f = [x] mutable { return ++x; };
        """
        assert feature_ids(src) == ["parameterless-lambda-specifiers"]
        (match,) = matches_for(src, "parameterless-lambda-specifiers")
        assert match.matched_text == "[x] mutable"

    def test_trailing_return_type(self):
        src = """
        auto f = [x] -> int { return x; };
        """
        assert feature_ids(src) == ["parameterless-lambda-specifiers"]

    def test_noexcept(self):
        src = """
        auto f = [] noexcept { return 1; };
        """
        assert feature_ids(src) == ["parameterless-lambda-specifiers"]

    def test_no_specifiers(self):
        src = """
        auto f = [x] { return x; };
        """
        assert feature_ids(src) == []

    def test_with_parameter_list(self):
        src = """
        auto f = [x]() mutable { return ++x; };
        """
        assert feature_ids(src) == []

    def test_subscript_is_not_a_lambda(self):
        src = """
        void f(int* a, int i) {
            a[i] = 0;
        }
        """
        assert feature_ids(src) == []
