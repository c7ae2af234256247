from typelower.ir import (
    BOOL,
    NULL,
    STRING,
    ChoiceType,
    ContainerType,
    LiteralType,
    OptionalType,
    RecordType,
    TypeVariant,
    UnresolvedReference,
)
from typelower.ir_stats import count_node_kinds


class TestCountNodeKinds:
    def test_empty(self):
        assert count_node_kinds([]) == {}

    def test_flat(self):
        assert count_node_kinds([STRING, BOOL]) == {"primitive": 2}

    def test_nested(self):
        record = RecordType(
            fields={
                "tags": ContainerType(element=STRING),
                "owner": OptionalType(inner=UnresolvedReference(name="User")),
                "state": ChoiceType(variants=[BOOL, NULL]),
            }
        )
        assert count_node_kinds([record]) == {
            "record": 1,
            "container": 1,
            "primitive": 2,
            "optional": 1,
            "unresolved_reference": 1,
            "choice": 1,
            "literal": 1,
        }

    def test_type_variant_is_descended(self):
        ir = LiteralType(value=TypeVariant(inner=STRING))
        assert count_node_kinds([ir]) == {"literal": 1, "primitive": 1}
