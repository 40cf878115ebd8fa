"""Tests for statement-level matchers."""
from test_utils import feature_ids, matches_for


class TestConstevalBranch:
    def test_if_consteval(self):
        src = """
        constexpr int f() {
            if consteval {
                return 1;
            }
            return 0;
        }
        """
        assert feature_ids(src) == ["compile-time-branch-marker"]
        (match,) = matches_for(src, "compile-time-branch-marker")
        assert match.matched_text == "if consteval"
        assert (match.location.line, match.location.column) == (2, 5)

    def test_negated(self):
        src = """
        constexpr int f() {
            if !consteval {
                return 1;
            } else {
                return 0;
            }
        }
        """
        (match,) = matches_for(src, "compile-time-branch-marker")
        assert match.matched_text == "if !consteval"

    def test_if_constexpr(self):
        src = """
        template <class T>
        int f() {
            if constexpr (sizeof(T) == 4) {
                return 1;
            }
            return 0;
        }
        """
        assert feature_ids(src) == []

    def test_plain_if(self):
        src = """
        int f(bool b) {
            if (b) { return 1; }
            return 0;
        }
        """
        assert feature_ids(src) == []


class TestConstantEvaluationTry:
    def test_constexpr_function(self):
        src = """
        constexpr int f() {
            try {
                return 1;
            } catch (...) {
                return 0;
            }
        }
        """
        assert feature_ids(src) == ["exception-handling-in-constant-evaluation"]
        (match,) = matches_for(src, "exception-handling-in-constant-evaluation")
        assert match.matched_text == "try"

    def test_consteval_function(self):
        src = """
        consteval int f() {
            try { return 1; } catch (...) { return 0; }
        }
        """
        assert feature_ids(src) == ["exception-handling-in-constant-evaluation"]

    def test_function_try_block(self):
        src = """
        constexpr int f() try {
            return 1;
        } catch (...) {
            return 0;
        }
        """
        assert feature_ids(src) == ["exception-handling-in-constant-evaluation"]

    def test_constexpr_lambda(self):
        src = """
        auto l = []() constexpr { try { return 1; } catch (...) { return 0; } };
        """
        assert feature_ids(src) == ["exception-handling-in-constant-evaluation"]

    def test_runtime_function(self):
        src = """
        int f() {
            try { return 1; } catch (...) { return 0; }
        }
        """
        assert feature_ids(src) == []


class TestMessagelessFalseAssertion:
    def test_discarded_branch_of_template(self):
        src = """
        template <class T>
        int f(T t) {
            if constexpr (sizeof(T) == 4) {
                return 1;
            } else {
                static_assert(false);
            }
        }
        """
        assert feature_ids(src) == ["unconditional-static-assertion-without-message"]

    def test_generic_lambda(self):
        src = """
        auto l = [](auto x) { static_assert(false); };
        """
        assert feature_ids(src) == ["unconditional-static-assertion-without-message"]

    def test_outside_template(self):
        src = """
        void f() {
            static_assert(false);
        }
        """
        assert feature_ids(src) == []

    def test_with_message(self):
        src = """
        template <class T>
        void f() {
            static_assert(false, "unsupported");
        }
        """
        assert feature_ids(src) == []

    def test_dependent_condition(self):
        src = """
        template <class T>
        void f() {
            static_assert(sizeof(T) > 0);
        }
        """
        assert feature_ids(src) == []


class TestTrailingLabel:
    def test_label_before_closing_brace(self):
        src = """
        void f() {
            goto end;
        end:
        }
        """
        assert feature_ids(src) == ["label-at-end-of-compound-statement"]
        (match,) = matches_for(src, "label-at-end-of-compound-statement")
        assert match.matched_text == "end:"
        assert match.location.line == 3

    def test_default_at_end_of_switch(self):
        src = """
        void f(int x) {
            switch (x) {
            case 1:
                break;
            default:
            }
        }
        """
        assert feature_ids(src) == ["label-at-end-of-compound-statement"]

    def test_labelled_statement(self):
        src = """
        void f() {
            goto end;
        end:
            return;
        }
        """
        assert feature_ids(src) == []

    def test_conditional_operator_and_bit_field(self):
        src = """
        struct B { unsigned x : 3; };
        int f(bool c, int a, int b) {
            return c ? a : b;
        }
        """
        assert feature_ids(src) == []
