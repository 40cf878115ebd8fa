"""Whole-file scenarios and properties of classification."""
from core.config import Config
from features.catalog import build_catalog
from pipeline import Outcome, SourceInput, classify_batch, classify_text
from test_utils import classify, feature_ids, q

SAMPLE = q(
    """
    #include <cstddef>
    #warning "migrating"

    struct Grid {
        int& operator[](std::size_t row, std::size_t col);
        static int operator()(int x);
    };

    union Cell { int raw = 0; float value; };

    auto n = 42uz;
    """
)


# Valid C++20 surroundings for a catalog example; EXAMPLE marks where it goes
CONTEXTS = {
    "file": "#include <cstddef>\nint base = 1;\nEXAMPLE\nint tail() { return base; }\n",
    "member": "struct Host {\n    int value = 0;\n    EXAMPLE\n};\n",
    "body": "int host(int value) {\n    EXAMPLE\n    return value;\n}\n",
    "expression": "void host() {\n    auto use = EXAMPLE;\n}\n",
}

EXAMPLE_CONTEXT = {
    "conditional-explicit": "member",
    "static-call-operator": "member",
    "multi-argument-subscript-operator": "member",
    "deduced-return-type-as-parameter": "member",
    "static-subscript-operator": "member",
    "zero-argument-subscript-operator": "member",
    "explicit-object-parameter": "member",
    "compile-time-branch-marker": "body",
    "copy-initialized-deduced-parameter": "body",
    "size-literal-suffix": "body",
    "extended-floating-literal-suffix": "body",
    "assume-attribute": "body",
    "enclosing-instance-value-capture": "expression",
    "parameterless-lambda-specifiers": "expression",
}


def _reported(result):
    return {m.feature_id for m in result.result.findings} | {n.feature_id for n in result.notes}


def _keys(result):
    return [(m.feature_id, m.offset, m.matched_text) for m in result.result.findings]


class TestScenarios:
    def test_static_call_operator(self):
        result = classify("struct S { static void operator()() {} };")
        assert [m.feature_id for m in result.result.findings] == ["static-call-operator"]
        assert result.required_standard == 23

    def test_multi_argument_subscript_definition(self):
        src = """
        struct M {
            int data[4];
            int& operator[](int i, int j) { return data[i * 2 + j]; }
        };
        """
        assert feature_ids(src) == ["multi-argument-subscript-operator"]

    def test_conditional_explicit_lookalike(self):
        result = classify("struct Wrapper { explicit Wrapper(int) {} };")
        assert result.result.findings == ()
        assert result.required_standard == 20

    def test_union_default_initializer(self):
        assert feature_ids("union U { int a = 1; float b; };") == ["default-initializer-in-variant-record"]

    def test_empty_input(self):
        result = classify_text("", "empty.cpp")
        assert result.result.findings == ()
        assert result.notes == ()
        assert result.diagnostics == ()
        assert result.required_standard == 20

    def test_empty_input_with_floor(self):
        result = classify_text("", "empty.cpp", config=Config(floor_standard=23))
        assert result.required_standard == 23


class TestProperties:
    def test_sample_findings(self):
        assert sorted(set(feature_ids(SAMPLE))) == [
            "default-initializer-in-variant-record",
            "multi-argument-subscript-operator",
            "size-literal-suffix",
            "static-call-operator",
            "warning-directive",
        ]

    def test_idempotent(self):
        first = classify_text(SAMPLE, "sample.cpp")
        second = classify_text(SAMPLE, "sample.cpp")
        assert first == second

    def test_required_is_max_of_findings(self):
        result = classify_text(SAMPLE, "sample.cpp")
        catalog = build_catalog()
        assert result.required_standard == max(catalog.lookup(m.feature_id).min_standard for m in result.result.findings)

    def test_removing_a_feature_removes_only_its_findings(self):
        full = classify_text(SAMPLE, "sample.cpp")
        for feature_id in set(m.feature_id for m in full.result.findings):
            reduced = classify_text(SAMPLE, "sample.cpp", config=Config(disabled_features=(feature_id,)))
            assert _keys(reduced) == [k for k in _keys(full) if k[0] != feature_id], feature_id

    def test_findings_point_into_the_source(self):
        lines = SAMPLE.splitlines()
        for m in classify_text(SAMPLE, "sample.cpp").result.findings:
            line = lines[m.location.line - 1]
            assert line[m.location.column - 1 :].startswith(m.matched_text.split()[0])

    def test_batch_matches_single_file_results(self):
        batch = classify_batch([SourceInput("sample.cpp", text=SAMPLE)], Config(jobs=1))
        assert batch.files[0] == classify_text(SAMPLE, "sample.cpp")
        assert batch.outcome == Outcome.VIOLATION

    def test_removing_an_example_drops_below_its_standard(self):
        for descriptor in build_catalog():
            context = CONTEXTS[EXAMPLE_CONTEXT.get(descriptor.id, "file")]
            with_example = classify_text(context.replace("EXAMPLE", descriptor.example), "example.cpp")
            assert descriptor.id in _reported(with_example), descriptor.id
            without = classify_text(context.replace("EXAMPLE", ""), "example.cpp")
            assert without.required_standard < descriptor.min_standard, descriptor.id
            assert descriptor.id not in _reported(without), descriptor.id
