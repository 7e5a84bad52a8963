"""
Property-based tests for visibility resolution.

Covers idempotence, the show/hide ordering law, downward propagation of
hidden parents and union exclusivity over generated value trees.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from paramvis.query.evaluator import evaluate
from paramvis.query.parser import parse_query
from paramvis.resolution.visibility import own_visibility, resolve_visibility
from paramvis.schema.loader import parse_schema
from paramvis.schema.model import DiscriminatedUnionParameter, Display, variant_path, walk
from paramvis.utils.value_tree import ValueTree

SCHEMA = {
    "name": "params",
    "type": "object",
    "children": [
        {"name": "mode", "type": "string"},
        {"name": "level", "type": "integer"},
        {
            "name": "advanced",
            "type": "object",
            "display": {"show": {"mode": "advanced"}, "hide": {"level": {"$lt": 0}}},
            "children": [
                {"name": "timeout", "type": "number"},
                {"name": "proxy", "type": "string", "display": {"hide": {"advanced.timeout": {"$gt": 60}}}},
            ],
        },
        {
            "name": "output",
            "type": "discriminated_union",
            "discriminator": "format",
            "display": {"hide": {"mode": "off"}},
            "variants": [
                {
                    "children": [
                        {"name": "format", "type": "string", "const": "json"},
                        {"name": "strict", "type": "boolean", "display": {"show": {"level": {"$gte": 2}}}},
                    ]
                },
                {
                    "children": [
                        {"name": "format", "type": "string", "const": "markdown"},
                        {"name": "toc", "type": "boolean"},
                    ]
                },
            ],
        },
        {"name": "footer", "type": "string", "display": {"show": {"$or": [{"level": {"$mod": [2, 0]}}, {"mode": "basic"}]}}},
    ],
}

ROOT = parse_schema(SCHEMA)
REFS = list(walk(ROOT))

FORMATS = st.sampled_from(["json", "markdown", "html", 1, None])

values_strategy = st.fixed_dictionaries(
    {},
    optional={
        "mode": st.sampled_from(["basic", "advanced", "off", ""]),
        "level": st.one_of(st.integers(min_value=-3, max_value=5), st.booleans(), st.none()),
        "advanced": st.fixed_dictionaries({}, optional={"timeout": st.floats(allow_nan=True, allow_infinity=False)}),
        "output": st.fixed_dictionaries({}, optional={"format": FORMATS}),
    },
)

CONDITIONS = [
    {"mode": "advanced"},
    {"level": {"$gte": 2}},
    {"mode": {"$in": ["basic", "off"]}},
    {"$nor": [{"level": {"$exists": True}}]},
    {"$and": [{"mode": {"$ne": "basic"}}, {"level": {"$lt": 4}}]},
]


class TestVisibilityProperties:
    @given(values=values_strategy)
    @settings(max_examples=150)
    def test_resolution_is_idempotent(self, values: dict):
        first = resolve_visibility(ROOT, values)
        second = resolve_visibility(ROOT, values)
        assert first == second
        assert first.to_dict() == second.to_dict()

    @given(values=values_strategy)
    @settings(max_examples=150)
    def test_hidden_parents_hide_descendants(self, values: dict):
        vis = resolve_visibility(ROOT, values)
        for ref in REFS:
            if ref.parent is None:
                continue
            if ref.variant_index is not None:
                container = variant_path(ref.parent.schema_path, ref.variant_index)
            else:
                container = ref.parent.schema_path
            if not vis.is_visible(container):
                assert not vis.is_visible(ref.schema_path), ref.schema_path

    @given(values=values_strategy)
    @settings(max_examples=150)
    def test_at_most_one_variant_visible(self, values: dict):
        vis = resolve_visibility(ROOT, values)
        for ref in REFS:
            if isinstance(ref.node, DiscriminatedUnionParameter):
                visible = [
                    i for i in range(len(ref.node.variants)) if vis.is_visible(variant_path(ref.schema_path, i))
                ]
                assert len(visible) <= 1
                if vis.is_visible(ref.schema_path) and not visible:
                    assert ref.schema_path in vis.incomplete_unions

    @given(values=values_strategy, fmt=FORMATS)
    @settings(max_examples=150)
    def test_discriminator_only_affects_union_subtree(self, values: dict, fmt):
        changed = dict(values)
        changed["output"] = {**values.get("output", {}), "format": fmt}
        before = resolve_visibility(ROOT, values)
        after = resolve_visibility(ROOT, changed)
        for path in before:
            if not path.startswith("output"):
                assert before[path] == after[path], path

    @given(
        values=values_strategy,
        show=st.one_of(st.none(), st.sampled_from(CONDITIONS)),
        hide=st.one_of(st.none(), st.sampled_from(CONDITIONS)),
    )
    @settings(max_examples=200)
    def test_show_hide_ordering_law(self, values: dict, show, hide):
        tree = ValueTree(values)
        show_expr = parse_query(show) if show is not None else None
        hide_expr = parse_query(hide) if hide is not None else None
        expected = (show_expr is None or evaluate(show_expr, tree)) and not (
            hide_expr is not None and evaluate(hide_expr, tree)
        )
        assert own_visibility(Display(show=show_expr, hide=hide_expr), tree) is expected
