"""Tests for fragment extraction."""
from scan.fragments import FragmentKind
from scan.scanner import scan
from test_utils import fragments, q

K = FragmentKind


class TestFragmentKinds:
    def test_member_operator_declaration(self):
        src = """
        struct S {
            int operator()(int x) const;
        };
        """
        found = fragments(src)
        assert [f.kind for f in found] == [K.DECLARATION, K.OPERATOR_DEF]
        assert found[0].text == "int operator()(int x) const"
        assert found[1].text == found[0].text

    def test_directives_interleave_by_position(self):
        src = """
        int a = 1;
        #warning "x"
        int b = 2;
        """
        kinds = [f.kind for f in fragments(src)]
        assert kinds == [K.LITERAL, K.DECLARATION, K.DIRECTIVE, K.LITERAL, K.DECLARATION]

    def test_union_members(self):
        src = """
        union U {
            int a = 0;
            static int s;
            void f();
        };
        """
        members = fragments(src, K.UNION_MEMBER)
        assert [m.text for m in members] == ["int a = 0"]
        declarations = fragments(src, K.DECLARATION)
        assert [d.text for d in declarations] == ["static int s", "void f()"]

    def test_capture_list_spans_declarator(self):
        src = """
        auto f = [x] mutable { return ++x; };
        """
        captures = fragments(src, K.CAPTURE_LIST)
        assert len(captures) == 1
        assert captures[0].text == "[x] mutable"

    def test_attribute(self):
        src = """
        void f(int n) {
            [[assume(n > 0)]];
        }
        """
        attributes = fragments(src, K.ATTRIBUTE)
        assert [a.text for a in attributes] == ["[[assume(n > 0)]]"]

    def test_label_before_closing_brace(self):
        src = """
        void f() {
            goto end;
        end:
        }
        """
        labels = fragments(src, K.LABEL)
        assert len(labels) == 1
        assert labels[0].text == "end:"
        assert labels[0].next_token.value == "}"

    def test_brace_initializer_does_not_close_function(self):
        src = """
        void f() {
            int v{3};
        done:
        }
        """
        labels = fragments(src, K.LABEL)
        assert [label.text for label in labels] == ["done:"]
        assert labels[0].next_token.value == "}"


class TestFragmentContext:
    def test_static_assert_in_function_template(self):
        src = """
        template <typename T>
        void f() {
            static_assert(false);
        }
        """
        (fragment,) = fragments(src, K.STATIC_ASSERT)
        assert fragment.context.in_template
        assert fragment.context.template_params == frozenset({"T"})

    def test_static_assert_outside_template(self):
        (fragment,) = fragments("static_assert(sizeof(int) == 4);", K.STATIC_ASSERT)
        assert not fragment.context.in_template

    def test_member_template_parameters_reach_declaration(self):
        src = """
        struct S {
            template <class Self>
            auto&& get(this Self&& self);
        };
        """
        (declaration,) = fragments(src, K.DECLARATION)
        assert declaration.context.in_template
        assert "Self" in declaration.context.template_params

    def test_try_in_constexpr_function(self):
        src = """
        constexpr int f() {
            try {
                return 1;
            } catch (...) {
                return 0;
            }
        }
        """
        (fragment,) = fragments(src, K.TRY_BLOCK)
        assert fragment.context.in_constant_function

    def test_try_in_plain_function(self):
        src = """
        int f() {
            try { return 1; } catch (...) { return 0; }
        }
        """
        (fragment,) = fragments(src, K.TRY_BLOCK)
        assert not fragment.context.in_constant_function

    def test_size_query_in_static_assert(self):
        src = """
        struct Node;
        static_assert(sizeof(Node) > 0);
        """
        (fragment,) = fragments(src, K.SIZE_QUERY)
        assert fragment.context.constant_context
        assert fragment.context.incomplete_types == frozenset({"Node"})

    def test_defined_record_is_complete(self):
        src = """
        struct Node;
        struct Node { int v; };
        static_assert(sizeof(Node) > 0);
        """
        (fragment,) = fragments(src, K.SIZE_QUERY)
        assert "Node" not in fragment.context.incomplete_types

    def test_size_query_at_runtime(self):
        src = """
        struct Node;
        void f() {
            g(sizeof(Node));
        }
        """
        (fragment,) = fragments(src, K.SIZE_QUERY)
        assert not fragment.context.constant_context


class TestScannerBehaviour:
    def test_restartable(self):
        scanner = scan(q("""
        struct S { static int operator()(int); };
        auto n = 42uz;
        """))
        first = list(scanner)
        second = list(scanner)
        assert first == second
        assert first

    def test_locations(self):
        (literal,) = fragments("int a;\n  auto n = 7uz;", K.LITERAL)
        assert (literal.line, literal.column) == (2, 12)
        assert literal.location.file == "test.cpp"
        assert str(literal.location) == "test.cpp:2:12"

    def test_unbalanced_brace_is_a_diagnostic(self):
        scanner = scan("int x; }\nint y;")
        found = list(scanner)
        assert len(scanner.diagnostics) == 1
        assert "Unbalanced" in scanner.diagnostics[0].message
        assert [f.text for f in found if f.kind == K.DECLARATION] == ["int x", "int y"]

    def test_lexer_diagnostics_are_collected(self):
        scanner = scan('const char* s = "abc;\nint y;')
        list(scanner)
        assert len(scanner.diagnostics) == 1

    def test_empty_source(self):
        scanner = scan("")
        assert list(scanner) == []
        assert scanner.diagnostics == []
