"""Shared fixtures: an in-memory stand-in for a store's GraphQL endpoint."""

import copy
import re
from typing import Any, Dict, List, Optional

import pytest

from metaobject_migrator.extractors.snapshot import SnapshotStore
from metaobject_migrator.services.resolver import ReferenceResolver

OPERATION_NAME = re.compile(r"(?:query|mutation)\s+(\w+)")
ALT_QUERY = re.compile(r"alt_text:'(.*)'")
ESCAPED = re.compile(r"\\(.)")


def field_definition(key, type_name, validations=None, name=None, required=False, description=None):
    """Field definition in snapshot shape."""
    return {
        "key": key,
        "name": name or key.replace("_", " ").title(),
        "description": description,
        "required": required,
        "type": {"category": None, "name": type_name},
        "validations": validations or [],
    }


def reference_to(definition_id):
    return [{"name": "metaobject_definition_id", "type": "single_line_text_field", "value": definition_id}]


def _user_error(field, message, code):
    return {"field": field, "message": message, "code": code}


class FakeStore:
    """
    Serves the named operations the migrator sends, backed by dicts.

    Creates and updates enforce referential integrity: a
    metaobject_definition_id validation must name a definition that
    exists in this store.
    """

    def __init__(self, name: str = "source", id_base: int = 100):
        self.url = f"https://{name}.myshopify.com/admin/api/2024-01/graphql.json"
        self.definitions: Dict[str, Dict[str, Any]] = {}
        self.products: Dict[str, str] = {}
        self.collections: Dict[str, str] = {}
        self.files: Dict[str, str] = {}
        self.metaobjects: Dict[tuple, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self._next_id = id_base

    def _gid(self, resource: str) -> str:
        self._next_id += 1
        return f"gid://shopify/{resource}/{self._next_id}"

    # Seeding

    def add_definition(self, definition_type, fields=None, name=None, description=None) -> str:
        definition_id = self._gid("MetaobjectDefinition")
        self.definitions[definition_id] = {
            "id": definition_id,
            "name": name or definition_type.replace("_", " ").title(),
            "type": definition_type,
            "description": description,
            "fieldDefinitions": list(fields or []),
        }
        return definition_id

    def add_product(self, product_id, handle):
        self.products[product_id] = handle

    def add_collection(self, collection_id, handle):
        self.collections[collection_id] = handle

    def add_file(self, file_id, alt):
        self.files[file_id] = alt

    def add_metaobject(self, definition_type, handle, fields, status=None) -> str:
        metaobject = {
            "id": self._gid("Metaobject"),
            "handle": handle,
            "type": definition_type,
            "displayName": handle.replace("-", " ").title(),
            "fields": fields,
        }
        if status:
            metaobject["capabilities"] = {"publishable": {"status": status}}
        self.metaobjects[(definition_type, handle)] = metaobject
        return metaobject["id"]

    # Inspection

    def definition_by_type(self, definition_type) -> Optional[Dict[str, Any]]:
        for definition in self.definitions.values():
            if definition["type"] == definition_type:
                return definition
        return None

    def field_keys(self, definition_type) -> List[str]:
        return [f["key"] for f in self.definition_by_type(definition_type)["fieldDefinitions"]]

    def operations(self, name) -> List[Dict[str, Any]]:
        return [variables for op, variables in self.calls if op == name]

    # Transport

    def execute(self, query, variables=None):
        name = OPERATION_NAME.search(query).group(1)
        variables = copy.deepcopy(variables or {})
        self.calls.append((name, variables))
        if name in self.failures:
            raise self.failures[name]
        return getattr(self, f"_op_{name}")(variables)

    @staticmethod
    def _page(items, variables):
        start = int(variables.get("after") or 0)
        end = start + variables["first"]
        return {
            "nodes": items[start:end],
            "pageInfo": {"hasNextPage": end < len(items), "endCursor": str(end)},
        }

    def _op_ListDefinitions(self, variables):
        summaries = [
            {"id": d["id"], "name": d["name"], "type": d["type"]}
            for d in self.definitions.values()
        ]
        return {"metaobjectDefinitions": self._page(summaries, variables)}

    def _op_DefinitionByType(self, variables):
        definition = self.definition_by_type(variables["type"])
        if definition is None:
            return {"metaobjectDefinitionByType": None}
        count = sum(1 for (t, _) in self.metaobjects if t == definition["type"])
        return {"metaobjectDefinitionByType": {**copy.deepcopy(definition), "metaobjectsCount": count}}

    def _op_DefinitionIdByType(self, variables):
        definition = self.definition_by_type(variables["type"])
        return {"metaobjectDefinitionByType": {"id": definition["id"]} if definition else None}

    def _op_DefinitionTypeById(self, variables):
        definition = self.definitions.get(variables["id"])
        return {"metaobjectDefinition": {"type": definition["type"]} if definition else None}

    def _op_MetaobjectsByType(self, variables):
        items = [
            copy.deepcopy(m) for (t, _), m in sorted(self.metaobjects.items())
            if t == variables["type"]
        ]
        return {"metaobjects": self._page(items, variables)}

    def _op_ProductHandleById(self, variables):
        handle = self.products.get(variables["id"])
        return {"product": {"handle": handle} if handle else None}

    def _op_ProductIdByHandle(self, variables):
        for product_id, handle in self.products.items():
            if handle == variables["handle"]:
                return {"productByHandle": {"id": product_id}}
        return {"productByHandle": None}

    def _op_CollectionHandleById(self, variables):
        handle = self.collections.get(variables["id"])
        return {"collection": {"handle": handle} if handle else None}

    def _op_CollectionIdByHandle(self, variables):
        for collection_id, handle in self.collections.items():
            if handle == variables["handle"]:
                return {"collectionByHandle": {"id": collection_id}}
        return {"collectionByHandle": None}

    def _op_FileAltById(self, variables):
        alt = self.files.get(variables["id"])
        return {"node": {"alt": alt} if alt is not None else None}

    def _op_FileIdByAlt(self, variables):
        wanted = ESCAPED.sub(r"\1", ALT_QUERY.search(variables["query"]).group(1))
        edges = [{"node": {"id": i}} for i, alt in self.files.items() if alt == wanted]
        return {"files": {"edges": edges[:1]}}

    def _integrity_errors(self, field_input, path):
        errors = []
        for validation in field_input.get("validations") or []:
            if validation["name"] == "metaobject_definition_id" and validation["value"] not in self.definitions:
                errors.append(_user_error(path, "Validation references an unknown definition", "INVALID"))
        return errors

    @staticmethod
    def _stored_field(field_input):
        return {
            "key": field_input["key"],
            "name": field_input.get("name"),
            "description": field_input.get("description"),
            "required": field_input.get("required", False),
            "type": {"category": None, "name": field_input["type"]},
            "validations": [
                {"name": v["name"], "type": None, "value": v["value"]}
                for v in field_input.get("validations") or []
            ],
        }

    def _op_CreateDefinition(self, variables):
        definition = variables["definition"]
        if self.definition_by_type(definition["type"]):
            errors = [_user_error(["definition", "type"], "Type has already been taken", "TAKEN")]
        else:
            errors = []
            for i, field_input in enumerate(definition.get("fieldDefinitions") or []):
                errors.extend(self._integrity_errors(field_input, ["definition", "fieldDefinitions", str(i)]))

        if errors:
            return {"metaobjectDefinitionCreate": {"metaobjectDefinition": None, "userErrors": errors}}

        definition_id = self.add_definition(
            definition["type"],
            fields=[self._stored_field(f) for f in definition.get("fieldDefinitions") or []],
            name=definition.get("name"),
            description=definition.get("description"),
        )
        created = self.definitions[definition_id]
        return {"metaobjectDefinitionCreate": {
            "metaobjectDefinition": {
                "id": definition_id,
                "name": created["name"],
                "type": created["type"],
                "fieldDefinitions": [{"key": f["key"]} for f in created["fieldDefinitions"]],
            },
            "userErrors": [],
        }}

    def _op_UpdateDefinition(self, variables):
        definition = self.definitions.get(variables["id"])
        if definition is None:
            errors = [_user_error(["id"], "Definition not found", "NOT_FOUND")]
            return {"metaobjectDefinitionUpdate": {"metaobjectDefinition": None, "userErrors": errors}}

        errors = []
        creates = [f["create"] for f in variables["definition"].get("fieldDefinitions") or []]
        existing = {f["key"] for f in definition["fieldDefinitions"]}
        for i, field_input in enumerate(creates):
            path = ["definition", "fieldDefinitions", str(i)]
            if field_input["key"] in existing:
                errors.append(_user_error(path, "Key has already been taken", "TAKEN"))
            errors.extend(self._integrity_errors(field_input, path))

        if errors:
            return {"metaobjectDefinitionUpdate": {"metaobjectDefinition": None, "userErrors": errors}}

        definition["fieldDefinitions"].extend(self._stored_field(f) for f in creates)
        return {"metaobjectDefinitionUpdate": {
            "metaobjectDefinition": {
                "id": definition["id"],
                "type": definition["type"],
                "fieldDefinitions": [{"key": f["key"]} for f in definition["fieldDefinitions"]],
            },
            "userErrors": [],
        }}

    def _op_UpsertMetaobject(self, variables):
        handle = variables["handle"]
        definition = self.definition_by_type(handle["type"])
        if definition is None:
            errors = [_user_error(["handle", "type"], "No definition with this type", "UNDEFINED_OBJECT_TYPE")]
            return {"metaobjectUpsert": {"metaobject": None, "userErrors": errors}}

        field_types = {f["key"]: f["type"]["name"] for f in definition["fieldDefinitions"]}
        fields = [
            {"key": f["key"], "value": f["value"], "type": field_types.get(f["key"], "")}
            for f in variables["metaobject"].get("fields") or []
        ]
        key = (handle["type"], handle["handle"])
        existing = self.metaobjects.get(key)
        metaobject = {
            "id": existing["id"] if existing else self._gid("Metaobject"),
            "handle": handle["handle"],
            "type": handle["type"],
            "displayName": handle["handle"],
            "fields": fields,
        }
        if variables["metaobject"].get("capabilities"):
            metaobject["capabilities"] = variables["metaobject"]["capabilities"]
        self.metaobjects[key] = metaobject

        return {"metaobjectUpsert": {
            "metaobject": {
                "id": metaobject["id"],
                "handle": metaobject["handle"],
                "fields": [{"key": f["key"], "value": f["value"]} for f in fields],
            },
            "userErrors": [],
        }}


@pytest.fixture
def source():
    return FakeStore("source", id_base=100)


@pytest.fixture
def destination():
    return FakeStore("destination", id_base=900)


@pytest.fixture
def resolver(source, destination):
    return ReferenceResolver(source, destination)


@pytest.fixture
def snapshot(tmp_path):
    return SnapshotStore(str(tmp_path / "store"), "source")


@pytest.fixture
def snapshot_of(snapshot):
    """Write source definitions (and their metaobjects) into the snapshot."""
    def write(store, *types):
        for definition_type in types:
            definition = store._op_DefinitionByType({"type": definition_type})["metaobjectDefinitionByType"]
            snapshot.write_definition(definition)
            snapshot.write_metaobjects(
                definition_type,
                [m for (t, _), m in sorted(store.metaobjects.items()) if t == definition_type],
            )
        return snapshot
    return write
