# tests/test_variants.py
"""
End-to-end: the eight linked-list ``length`` variants, parsed from their
S-expression form and classified.
"""

import pytest

from arc_tailcall import Classification, analyze, classify_many, parse_function, parse_functions

from conftest import VARIANTS


@pytest.mark.parametrize("name", sorted(VARIANTS))
def test_variant_classification(name):
    source, expected, override = VARIANTS[name]
    report = analyze(parse_function(source))
    assert report.classification.value == expected
    assert report.potential_override is override


class TestVariantDetails:

    def test_loop_variants_have_no_recursion(self):
        for name in ("v3", "v4", "v5"):
            report = analyze(parse_function(VARIANTS[name][0]))
            assert report.recursive_call_count == 0
            assert report.path_count == 1

    def test_instance_recursion_blocked_by_addition(self):
        report = analyze(parse_function(VARIANTS["v1"][0]))
        blocking = [e for e in report.explanations if e.classification.is_blocking]
        assert [e.statement for e in blocking] == ["1 + n"]

    def test_ivar_variant_differs_from_accessor_variant_only_by_cleanup(self):
        v6 = analyze(parse_function(VARIANTS["v6"][0]))
        v7 = analyze(parse_function(VARIANTS["v7"][0]))
        assert v6.path_count == v7.path_count == 2
        assert v6.blocked_paths() == (1,)
        assert v7.blocked_paths() == ()

    def test_check_then_dispatch_blocks_only_fallback_path(self):
        report = analyze(parse_function(VARIANTS["v8"][0]))
        assert report.path_count == 3
        assert report.blocked_paths() == (2,)
        blocking = [e for e in report.explanations if e.classification.is_blocking]
        assert blocking[0].statement == "release(node.next)"
        assert blocking[0].trail == "!(!node) && !(object_getClass(node) == self)"

    def test_whole_module_in_parallel(self, variants_module_source):
        reports = classify_many(parse_functions(variants_module_source), max_workers=4)
        got = [r.classification.value for r in reports]
        assert got == [expected for _, expected, _ in VARIANTS.values()]
        optimizable = sum(1 for r in reports if r.classification is Classification.TAIL_CALL_OPTIMIZABLE)
        assert optimizable == 4
