"""Unit tests for static schema validation."""

import pytest

from paramvis.core.exceptions import SchemaValidationError
from paramvis.query.parser import parse_query
from paramvis.schema.compiler import compile_schema
from paramvis.schema.issues import SchemaErrorKind
from paramvis.schema.loader import parse_schema
from paramvis.schema.model import (
    ArrayParameter,
    BooleanParameter,
    Constraints,
    DiscriminatedUnionParameter,
    Display,
    IntegerParameter,
    ObjectParameter,
    StringParameter,
    UnionVariant,
)
from paramvis.schema.validator import validate


def _obj(*children, **kwargs) -> ObjectParameter:
    return ObjectParameter(name=kwargs.pop("name", "root"), children=children, **kwargs)


def _union(*variants, discriminator="format", name="output") -> DiscriminatedUnionParameter:
    return DiscriminatedUnionParameter(
        name=name,
        discriminator=discriminator,
        variants=[UnionVariant(children=children) for children in variants],
    )


def _kinds(root) -> list:
    return [issue.kind for issue in validate(root).errors]


class TestValidSchemas:
    def test_connector_is_valid(self, connector_raw):
        result = validate(parse_schema(connector_raw))
        assert result.ok, [str(e) for e in result.errors]

    def test_root_union_is_valid(self, format_union_raw):
        assert validate(parse_schema(format_union_raw)).ok


class TestNames:
    def test_duplicate_sibling(self):
        root = _obj(StringParameter(name="a"), BooleanParameter(name="a"), StringParameter(name="a"))
        result = validate(root)
        assert [i.kind for i in result.errors] == [SchemaErrorKind.DUPLICATE_NAME]
        assert result.errors[0].path == ""
        assert result.errors[0].details["name"] == "a"

    def test_same_name_in_different_variants_is_fine(self):
        root = _obj(
            _union(
                [StringParameter(name="format", const="a"), BooleanParameter(name="x")],
                [StringParameter(name="format", const="b"), BooleanParameter(name="x")],
            )
        )
        assert validate(root).ok

    def test_duplicate_within_variant(self):
        root = _obj(_union([StringParameter(name="format", const="a"), StringParameter(name="format", const="a")]))
        result = validate(root)
        assert SchemaErrorKind.DUPLICATE_NAME in result.kinds()
        assert result.by_kind(SchemaErrorKind.DUPLICATE_NAME)[0].path == "output#0"

    @pytest.mark.parametrize("name", ["has space", "dash-ed", "dot.ted", "", "ünï"])
    def test_invalid_identifier(self, name):
        assert _kinds(_obj(StringParameter(name=name))) == [SchemaErrorKind.INVALID_IDENTIFIER]

    def test_invalid_discriminator_identifier(self):
        root = _obj(_union([StringParameter(name="a b", const="x")], discriminator="a b"))
        assert SchemaErrorKind.INVALID_IDENTIFIER in set(_kinds(root))


class TestConstraints:
    def test_range_inversion(self):
        assert _kinds(_obj(IntegerParameter(name="n", constraints=Constraints(minimum=5, maximum=1)))) == [
            SchemaErrorKind.RANGE_INVERSION
        ]

    def test_length_inversion(self):
        node = StringParameter(name="s", constraints=Constraints(min_length=4, max_length=2))
        assert _kinds(_obj(node)) == [SchemaErrorKind.RANGE_INVERSION]

    def test_equal_bounds_are_fine(self):
        assert validate(_obj(IntegerParameter(name="n", constraints=Constraints(minimum=2, maximum=2)))).ok

    def test_range_on_string(self):
        assert _kinds(_obj(StringParameter(name="s", constraints=Constraints(minimum=1)))) == [
            SchemaErrorKind.INVALID_CONSTRAINT
        ]

    def test_length_on_boolean(self):
        assert _kinds(_obj(BooleanParameter(name="b", constraints=Constraints(max_length=1)))) == [
            SchemaErrorKind.INVALID_CONSTRAINT
        ]

    def test_negative_length(self):
        assert _kinds(_obj(StringParameter(name="s", constraints=Constraints(min_length=-1)))) == [
            SchemaErrorKind.INVALID_CONSTRAINT
        ]

    def test_empty_enum(self):
        assert _kinds(_obj(StringParameter(name="s", constraints=Constraints(enum=[])))) == [
            SchemaErrorKind.INVALID_CONSTRAINT
        ]

    def test_enum_type_mismatch(self):
        node = IntegerParameter(name="n", constraints=Constraints(enum=[1, "2", True]))
        result = validate(_obj(node))
        assert result.kinds() == {SchemaErrorKind.INVALID_CONSTRAINT}
        assert result.errors[0].details["invalid"] == ["2", True]

    def test_const_outside_enum(self):
        node = StringParameter(name="s", const="c", constraints=Constraints(enum=["a", "b"]))
        assert _kinds(_obj(node)) == [SchemaErrorKind.INVALID_CONSTRAINT]


class TestDefaults:
    def test_wrong_type(self):
        assert _kinds(_obj(IntegerParameter(name="n", default=1.5))) == [SchemaErrorKind.INVALID_DEFAULT]
        assert _kinds(_obj(BooleanParameter(name="b", default=0))) == [SchemaErrorKind.INVALID_DEFAULT]

    def test_outside_range(self):
        node = IntegerParameter(name="n", default=10, constraints=Constraints(minimum=0, maximum=5))
        assert _kinds(_obj(node)) == [SchemaErrorKind.INVALID_DEFAULT]

    def test_not_in_enum(self):
        node = StringParameter(name="s", default="c", constraints=Constraints(enum=["a"]))
        assert _kinds(_obj(node)) == [SchemaErrorKind.INVALID_DEFAULT]

    def test_too_long(self):
        node = StringParameter(name="s", default="abcd", constraints=Constraints(max_length=3))
        assert _kinds(_obj(node)) == [SchemaErrorKind.INVALID_DEFAULT]

    def test_valid_default(self):
        node = IntegerParameter(name="n", default=3, constraints=Constraints(minimum=0, maximum=5))
        assert validate(_obj(node)).ok


class TestUnions:
    def test_empty_union(self):
        assert _kinds(_obj(_union())) == [SchemaErrorKind.EMPTY_UNION]

    def test_missing_discriminator_field(self):
        root = _obj(_union([StringParameter(name="format", const="a")], [BooleanParameter(name="x")]))
        result = validate(root)
        assert result.kinds() == {SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT}
        assert result.errors[0].path == "output#1"

    def test_discriminator_not_pinned(self):
        root = _obj(
            _union(
                [StringParameter(name="format", const="a")],
                [StringParameter(name="format", constraints=Constraints(enum=["b", "c"]))],
            )
        )
        assert _kinds(root) == [SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT]

    def test_discriminator_of_wrong_kind(self):
        root = _obj(_union([StringParameter(name="format", const="a")], [BooleanParameter(name="format")]))
        assert _kinds(root) == [SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT]

    def test_duplicate_constant(self):
        root = _obj(
            _union(
                [StringParameter(name="format", const="json")],
                [StringParameter(name="format", constraints=Constraints(enum=["json"]))],
            )
        )
        result = validate(root)
        assert _kinds(root) == [SchemaErrorKind.DUPLICATE_DISCRIMINATOR_CONSTANT]
        assert result.errors[0].details["other_variant"] == 0


class TestConditions:
    def test_dangling_path(self):
        root = _obj(
            StringParameter(name="a"),
            StringParameter(name="b", display=Display(show=parse_query({"nope": 1, "a": 2}))),
        )
        result = validate(root)
        assert _kinds(root) == [SchemaErrorKind.DANGLING_CONDITION_PATH]
        assert result.errors[0].details == {"clause": "show", "reference": "nope"}
        assert result.errors[0].path == "b"

    def test_nested_and_variant_paths_are_referenceable(self):
        root = _obj(
            ObjectParameter(name="cfg", children=[IntegerParameter(name="level")]),
            _union(
                [StringParameter(name="format", const="a"), BooleanParameter(name="strict")],
                [StringParameter(name="format", const="b")],
            ),
            StringParameter(
                name="c",
                display=Display(
                    show=parse_query({"cfg.level": {"$gt": 1}, "output.strict": True}),
                    hide=parse_query({"$or": [{"output.format": "b"}, {"cfg": {"$exists": False}}]}),
                ),
            ),
        )
        assert validate(root).ok

    def test_array_item_paths_are_not_referenceable(self):
        root = _obj(
            ArrayParameter(name="tags", items=ObjectParameter(name="item", children=[StringParameter(name="x")])),
            StringParameter(name="c", display=Display(hide=parse_query({"tags[].x": "y"}))),
        )
        assert _kinds(root) == [SchemaErrorKind.DANGLING_CONDITION_PATH]

    def test_dangling_in_nested_logical(self):
        root = _obj(
            StringParameter(name="a"),
            StringParameter(name="b", display=Display(hide=parse_query({"$and": [{"$nor": [{"zz": 1}]}]}))),
        )
        assert _kinds(root) == [SchemaErrorKind.DANGLING_CONDITION_PATH]

    def test_unparsed_condition(self):
        display = Display(show={"a": 1})  # type: ignore[arg-type]
        root = _obj(StringParameter(name="a"), StringParameter(name="b", display=display))
        assert _kinds(root) == [SchemaErrorKind.MALFORMED_CONDITION]

    def test_self_reference_is_allowed(self):
        node = StringParameter(name="a", display=Display(hide=parse_query({"a": "x"})))
        assert validate(_obj(node)).ok


class TestDepth:
    def test_depth_exceeded_reported_once(self):
        node = StringParameter(name="leaf")
        for i in range(5):
            node = ObjectParameter(name=f"o{i}", children=[node])
        result = validate(node, max_depth=3)
        assert result.kinds() == {SchemaErrorKind.DEPTH_EXCEEDED}
        assert len(result.errors) == 1
        assert validate(node, max_depth=5).ok

    def test_depth_default_from_settings(self, monkeypatch):
        monkeypatch.setenv("PARAMVIS_MAX_SCHEMA_DEPTH", "1")
        root = _obj(ObjectParameter(name="inner", children=[StringParameter(name="x")]))
        assert _kinds(root) == [SchemaErrorKind.DEPTH_EXCEEDED]


class TestCompleteness:
    def test_reports_every_defect_in_one_pass(self):
        root = _obj(
            StringParameter(name="a"),
            StringParameter(name="a"),
            StringParameter(name="bad name"),
            IntegerParameter(name="n", constraints=Constraints(minimum=3, maximum=1)),
            _union(
                [StringParameter(name="format", const="x")],
                [StringParameter(name="format", const="x")],
                [BooleanParameter(name="flag")],
            ),
            StringParameter(name="c", display=Display(show=parse_query({"ghost": 1}))),
        )
        assert validate(root).kinds() == {
            SchemaErrorKind.DUPLICATE_NAME,
            SchemaErrorKind.INVALID_IDENTIFIER,
            SchemaErrorKind.RANGE_INVERSION,
            SchemaErrorKind.DUPLICATE_DISCRIMINATOR_CONSTANT,
            SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT,
            SchemaErrorKind.DANGLING_CONDITION_PATH,
        }

    def test_fix_and_reintroduce(self):
        broken = _obj(IntegerParameter(name="n", constraints=Constraints(minimum=3, maximum=1)))
        fixed = _obj(IntegerParameter(name="n", constraints=Constraints(minimum=1, maximum=3)))
        assert not validate(broken).ok
        assert validate(fixed).ok
        assert validate(broken).kinds() == {SchemaErrorKind.RANGE_INVERSION}

    def test_raise_for_errors(self):
        result = validate(_obj(StringParameter(name="a"), StringParameter(name="a")))
        with pytest.raises(SchemaValidationError) as exc:
            result.raise_for_errors()
        assert exc.value.error_code == "SCHEMA_VALIDATION_ERROR"
        assert "DuplicateName" in exc.value.message
        validate(_obj(StringParameter(name="a"))).raise_for_errors()

    def test_to_dict(self):
        data = validate(_obj(StringParameter(name="a"), StringParameter(name="a"))).to_dict()
        assert data["ok"] is False
        assert data["error_count"] == 1
        assert data["errors"][0]["kind"] == "DuplicateName"


class TestCompileSchema:
    def test_valid(self, connector_raw):
        compiled = compile_schema(connector_raw)
        assert compiled.ok
        assert compiled.root is not None

    def test_shape_errors_are_returned(self):
        compiled = compile_schema({"name": "a", "type": "nope"})
        assert not compiled.ok
        assert compiled.root is None
        assert compiled.result.kinds() == {SchemaErrorKind.MALFORMED_NODE}

    def test_semantic_errors_withhold_root(self):
        compiled = compile_schema(
            {"name": "o", "type": "object", "children": [{"name": "a", "type": "string"}, {"name": "a", "type": "string"}]}
        )
        assert compiled.root is None
        assert compiled.result.kinds() == {SchemaErrorKind.DUPLICATE_NAME}


    def test_condition_errors_merged_with_semantic_errors(self):
        compiled = compile_schema(
            {
                "name": "o",
                "type": "object",
                "children": [
                    {"name": "a", "type": "string"},
                    {"name": "a", "type": "string", "display": {"show": {"a": {"$where": 1}}}},
                ],
            }
        )
        assert compiled.root is None
        assert compiled.result.kinds() == {SchemaErrorKind.MALFORMED_CONDITION, SchemaErrorKind.DUPLICATE_NAME}

    def test_reports_every_defect_from_raw(self):
        compiled = compile_schema(
            {
                "name": "o",
                "type": "object",
                "children": [
                    {"name": "a", "type": "string"},
                    {"name": "a", "type": "string"},
                    {"name": "n", "type": "integer", "minimum": 3, "maximum": 1},
                    {"name": "b", "type": "string", "display": {"show": {"ghost": 1}, "hide": {"$or": 1}}},
                ],
            }
        )
        assert compiled.result.kinds() == {
            SchemaErrorKind.MALFORMED_CONDITION,
            SchemaErrorKind.DUPLICATE_NAME,
            SchemaErrorKind.RANGE_INVERSION,
            SchemaErrorKind.DANGLING_CONDITION_PATH,
        }

    def test_deep_tree_is_returned_not_raised(self):
        node: dict = {"name": "leaf", "type": "string"}
        for i in range(300):
            node = {"name": f"o{i}", "type": "object", "children": [node]}
        compiled = compile_schema(node)
        assert compiled.root is None
        assert compiled.result.kinds() == {SchemaErrorKind.DEPTH_EXCEEDED}
        assert len(compiled.result.errors) == 1
