"""Tests for definition and field formatting."""

from unittest.mock import MagicMock

import pytest

from metaobject_migrator.models.definition import Definition, FieldDefinition, Validation
from metaobject_migrator.services.formatter import DeferredField, FieldDisposition, FieldFormatter


@pytest.fixture
def resolver():
    resolver = MagicMock()
    resolver.definition_type.side_effect = {"gid://source/size": "size"}.get
    resolver.definition_id.side_effect = {"size": "gid://dest/size"}.get
    return resolver


def reference_field(key="size", definition_id="gid://source/size", type_name="metaobject_reference"):
    return FieldDefinition(
        key=key,
        type_name=type_name,
        name=key.title(),
        validations=[Validation("metaobject_definition_id", definition_id)],
    )


class TestFormatField:
    def test_plain_field_without_validations_has_no_validations_key(self, resolver):
        disposition, payload = FieldFormatter(resolver).format_field(
            FieldDefinition(key="title", type_name="single_line_text_field", name="Title", required=True),
            "size",
        )

        assert disposition == FieldDisposition.INCLUDED
        assert payload == {"key": "title", "name": "Title", "required": True, "type": "single_line_text_field"}

    def test_description_included_when_set(self, resolver):
        _, payload = FieldFormatter(resolver).format_field(
            FieldDefinition(key="title", type_name="single_line_text_field", description="Shown on PDP"),
            "size",
        )

        assert payload["description"] == "Shown on PDP"

    def test_structured_validation_value_is_serialised(self, resolver):
        field_definition = FieldDefinition(
            key="weight",
            type_name="weight",
            validations=[
                Validation("min", {"unit": "KILOGRAMS", "value": 0}),
                Validation("max_precision", "2"),
            ],
        )

        _, payload = FieldFormatter(resolver).format_field(field_definition, "size")

        assert payload["validations"] == [
            {"name": "min", "value": '{"unit": "KILOGRAMS", "value": 0}'},
            {"name": "max_precision", "value": "2"},
        ]

    def test_reference_rewritten_to_destination_id(self, resolver):
        disposition, payload = FieldFormatter(resolver).format_field(reference_field(), "product_feature")

        assert disposition == FieldDisposition.INCLUDED
        assert payload["validations"] == [{"name": "metaobject_definition_id", "value": "gid://dest/size"}]

    def test_list_reference_rewritten(self, resolver):
        _, payload = FieldFormatter(resolver).format_field(
            reference_field(type_name="list.metaobject_reference"), "product_feature"
        )

        assert payload["type"] == "list.metaobject_reference"
        assert payload["validations"][0]["value"] == "gid://dest/size"

    def test_reference_unknown_in_source_is_excluded(self, resolver):
        disposition, payload = FieldFormatter(resolver).format_field(
            reference_field(definition_id="gid://source/deleted"), "product_feature"
        )

        assert disposition == FieldDisposition.EXCLUDED
        assert payload is None
        resolver.definition_id.assert_not_called()

    def test_reference_missing_in_destination_is_deferred(self, resolver):
        resolver.definition_id.side_effect = None
        resolver.definition_id.return_value = None

        disposition, deferred = FieldFormatter(resolver).format_field(reference_field(), "product_feature")

        assert disposition == FieldDisposition.DEFERRED
        assert isinstance(deferred, DeferredField)
        assert deferred.owner_type == "product_feature"
        assert deferred.key == "size"
        assert deferred.referenced_types == {"gid://source/size": "size"}
        assert "validations" not in deferred.payload


class TestFormatDeferred:
    def test_resolves_against_destination_when_target_exists(self, resolver):
        deferred = DeferredField(
            owner_type="a",
            key="b_ref",
            payload={"key": "b_ref", "name": "B", "required": False, "type": "metaobject_reference"},
            validations=[Validation("metaobject_definition_id", "gid://source/size")],
            referenced_types={"gid://source/size": "size"},
        )

        field_input = FieldFormatter(resolver).format_deferred(deferred)

        assert field_input == {"create": {
            "key": "b_ref",
            "name": "B",
            "required": False,
            "type": "metaobject_reference",
            "validations": [{"name": "metaobject_definition_id", "value": "gid://dest/size"}],
        }}
        assert "validations" not in deferred.payload

    def test_none_while_target_still_missing(self, resolver):
        resolver.definition_id.side_effect = None
        resolver.definition_id.return_value = None
        deferred = DeferredField(
            owner_type="a",
            key="b_ref",
            payload={"key": "b_ref"},
            validations=[Validation("metaobject_definition_id", "gid://source/size")],
            referenced_types={"gid://source/size": "size"},
        )

        assert FieldFormatter(resolver).format_deferred(deferred) is None


class TestFormatDefinition:
    def test_splits_fields_by_disposition(self, resolver):
        resolver.definition_type.side_effect = {
            "gid://source/size": "size",
            "gid://source/color": "color",
        }.get
        definition = Definition(
            type="product_feature",
            name="Product feature",
            field_definitions=[
                FieldDefinition(key="title", type_name="single_line_text_field"),
                reference_field("size"),
                reference_field("color", definition_id="gid://source/color"),
                reference_field("legacy", definition_id="gid://source/deleted"),
            ],
        )

        formatted = FieldFormatter(resolver).format_definition(definition)

        assert formatted.definition["type"] == "product_feature"
        assert "description" not in formatted.definition
        assert formatted.field_keys == ["title", "size"]
        assert [f.key for f in formatted.deferred_fields["product_feature"]] == ["color"]
        assert formatted.excluded_fields == ["legacy"]
