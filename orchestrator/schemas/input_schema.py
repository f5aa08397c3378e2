from typing import Any, Dict, List, Literal, TypedDict, Union

JsonObject = Dict[str, Any]


class SchemaField(TypedDict):
    name: str
    schema: JsonObject


class SchemaFragment(TypedDict):
    """One step of a multi-part form.

    ``fields`` keeps the declared property order; ``schema`` is the resolved
    JSON schema of the step as it is sent to the client.
    """

    id: str
    title: str
    fields: List[SchemaField]
    schema: JsonObject


class FlatSchema(TypedDict):
    kind: Literal["flat"]
    schema: JsonObject


class ComposedMember(TypedDict):
    id: str
    schema: JsonObject


class ComposedSchema(TypedDict):
    kind: Literal["composed"]
    root: JsonObject
    members: List[ComposedMember]


SchemaShape = Union[FlatSchema, ComposedSchema]
