"""Input schema composition parsing.

A workflow's data input schema is either a single flat object schema, or a
composition of ordered sub-schemas where every sub-schema is one step of a
multi-part form. Two composition styles are recognised:

    # property-style: every property references an object schema
    {
        "type": "object",
        "properties": {
            "personal": {"$ref": "#/$defs/Personal"},
            "contact": {"$ref": "#/$defs/Contact"},
        },
        "$defs": {...},
    }

    # list-style
    {"allOf": [{"$ref": "#/$defs/Personal"}, {"$ref": "#/$defs/Contact"}]}

The shape is classified once (``classify_schema``) and every consumer works on
the resulting fragments.
"""

from typing import Any, List, Optional, Sequence

from ..common.errors import SchemaError
from ..schemas.input_schema import (
    ComposedMember,
    ComposedSchema,
    FlatSchema,
    JsonObject,
    SchemaField,
    SchemaFragment,
    SchemaShape,
)

COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")
DEFINITION_KEYWORDS = ("$defs", "definitions")

ROOT_MEMBER = "<root>"
DEFAULT_FRAGMENT_ID = "input"

MAX_REF_DEPTH = 32


def parse_composition(schema: Any) -> List[SchemaFragment]:
    """Split a declared input schema into ordered form fragments.

    Raises:
        SchemaError: If the schema, or one of its composition members, is
            not an object schema with a field list, or references something
            that cannot be resolved.
    """
    shape = classify_schema(schema)

    if shape["kind"] == "flat":
        return [_parse_flat(shape["schema"])]

    root = shape["root"]
    return [_parse_member(member, root) for member in shape["members"]]


def classify_schema(schema: Any) -> SchemaShape:
    """Decide whether ``schema`` is a flat schema or a composition."""
    if not isinstance(schema, dict):
        raise SchemaError(ROOT_MEMBER, "input schema must be a JSON object")

    for keyword in COMPOSITION_KEYWORDS:
        if keyword not in schema:
            continue
        members = schema[keyword]
        if not isinstance(members, list) or not members:
            raise SchemaError(keyword, f"'{keyword}' must be a non-empty list")
        return ComposedSchema(
            kind="composed",
            root=schema,
            members=[
                ComposedMember(id=_list_member_id(member, index), schema=member)
                for index, member in enumerate(members)
            ],
        )

    properties = schema.get("properties")
    if properties is not None and not isinstance(properties, dict):
        raise SchemaError(ROOT_MEMBER, "'properties' must be an object")

    if properties and all(
        _is_step_schema(value, schema) for value in properties.values()
    ):
        return ComposedSchema(
            kind="composed",
            root=schema,
            members=[
                ComposedMember(id=key, schema=value)
                for key, value in properties.items()
            ],
        )

    return FlatSchema(kind="flat", schema=schema)


def _is_step_schema(candidate: Any, root: JsonObject) -> bool:
    # Inline object properties are nested fields, only references form steps
    if not isinstance(candidate, dict) or "$ref" not in candidate:
        return False
    try:
        resolved = resolve_refs(candidate, [root], ROOT_MEMBER)
    except SchemaError:
        # Surfaces again, with the member name, when the member is parsed
        return True
    return isinstance(resolved.get("properties"), dict)


def _list_member_id(member: Any, index: int) -> str:
    if isinstance(member, dict):
        if isinstance(member.get("$id"), str):
            return member["$id"]
        ref = member.get("$ref")
        if isinstance(ref, str) and "/" in ref:
            return _unescape(ref.rsplit("/", 1)[-1])
    return f"step-{index + 1}"


def _parse_flat(schema: JsonObject) -> SchemaFragment:
    fragment_id = schema.get("$id") or DEFAULT_FRAGMENT_ID
    fields = _parse_fields(schema, ROOT_MEMBER, [schema])
    return _build_fragment(fragment_id, schema, fields, None)


def _parse_member(member: ComposedMember, root: JsonObject) -> SchemaFragment:
    member_id = member["id"]
    raw = member["schema"]
    if not isinstance(raw, dict):
        raise SchemaError(member_id, "composition member must be a JSON object")

    resolved = resolve_refs(raw, [root], member_id)
    if not isinstance(resolved.get("properties"), dict):
        raise SchemaError(member_id, "composition member declares no properties")

    fields = _parse_fields(resolved, member_id, [resolved, root])
    return _build_fragment(member_id, resolved, fields, root)


def _parse_fields(
    schema: JsonObject, member_id: str, scopes: Sequence[JsonObject]
) -> List[SchemaField]:
    properties = schema.get("properties", {})
    if not isinstance(properties, dict):
        raise SchemaError(member_id, "'properties' must be an object")

    fields = []
    for name, field_schema in properties.items():
        if isinstance(field_schema, dict):
            field_schema = resolve_refs(field_schema, scopes, member_id)
        elif not isinstance(field_schema, bool):
            raise SchemaError(member_id, f"field '{name}' has an invalid schema")
        fields.append(SchemaField(name=name, schema=field_schema))
    return fields


def _build_fragment(
    fragment_id: str,
    schema: JsonObject,
    fields: List[SchemaField],
    root: Optional[JsonObject],
) -> SchemaFragment:
    fragment_schema = dict(schema)
    fragment_schema["$id"] = fragment_id
    fragment_schema.setdefault("type", "object")
    fragment_schema["properties"] = {field["name"]: field["schema"] for field in fields}

    # Nested references inside field schemas stay resolvable on the client
    if root is not None:
        for keyword in DEFINITION_KEYWORDS:
            if isinstance(root.get(keyword), dict):
                fragment_schema[keyword] = {
                    **root[keyword],
                    **fragment_schema.get(keyword, {}),
                }

    return SchemaFragment(
        id=fragment_id,
        title=str(schema.get("title") or fragment_id),
        fields=fields,
        schema=fragment_schema,
    )


def resolve_refs(
    schema: JsonObject, scopes: Sequence[JsonObject], member_id: str
) -> JsonObject:
    """Follow a ``$ref`` chain, letting sibling keywords override the target.

    Only document-local JSON pointers (``#/...``) are supported. Each pointer
    is looked up in ``scopes`` in order and the first match wins.
    """
    seen = set()
    current = schema
    while "$ref" in current:
        ref = current["$ref"]
        if not isinstance(ref, str):
            raise SchemaError(member_id, "'$ref' must be a string")
        if ref in seen or len(seen) >= MAX_REF_DEPTH:
            raise SchemaError(member_id, f"circular reference '{ref}'")
        seen.add(ref)

        target = _lookup_pointer(ref, scopes, member_id)
        overrides = {key: value for key, value in current.items() if key != "$ref"}
        current = {**target, **overrides}
    return current


def _lookup_pointer(
    ref: str, scopes: Sequence[JsonObject], member_id: str
) -> JsonObject:
    if ref == "#":
        raise SchemaError(member_id, "self reference '#' is not allowed")
    if not ref.startswith("#/"):
        raise SchemaError(member_id, f"unsupported reference '{ref}'")

    path = [_unescape(part) for part in ref[2:].split("/")]
    for scope in scopes:
        node: Any = scope
        for part in path:
            if isinstance(node, dict) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                node = None
                break
        if isinstance(node, dict):
            return node

    raise SchemaError(member_id, f"unresolvable reference '{ref}'")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")
