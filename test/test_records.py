"""Tests for union member initializers."""
from test_utils import feature_ids, matches_for


class TestUnionMemberInitializer:
    def test_equals_initializer(self):
        src = """
        union U { int a = 42; float b; };
        """
        assert feature_ids(src) == ["default-initializer-in-variant-record"]
        (match,) = matches_for(src, "default-initializer-in-variant-record")
        assert match.matched_text == "int a = 42"

    def test_brace_initializer(self):
        src = """
        union U {
            int a{0};
            float b;
        };
        """
        assert feature_ids(src) == ["default-initializer-in-variant-record"]

    def test_anonymous_union_member(self):
        src = """
        struct S {
            union {
                int i = 1;
                float f;
            };
        };
        """
        assert feature_ids(src) == ["default-initializer-in-variant-record"]

    def test_struct_member_initializer(self):
        src = """
        struct S { int a = 42; float b; };
        """
        assert feature_ids(src) == []

    def test_member_function_default_argument(self):
        src = """
        union U {
            int a;
            void set(int v = 0);
            static int s;
        };
        """
        assert feature_ids(src) == []
