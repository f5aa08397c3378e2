import copy
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.config import WORKFLOW_DATA_KEY
from ..schemas.input_schema import SchemaFragment
from ..schemas.instance import InstanceLookup, Present
from ..schemas.state import FragmentValues, InitialState

_MISSING = object()


def workflow_data_of(
    variables: Union[InstanceLookup, Mapping[str, Any], None],
) -> Optional[Mapping[str, Any]]:
    """Return the workflow data recorded in an instance variables snapshot."""
    if isinstance(variables, Present):
        variables = variables.variables
    elif not isinstance(variables, Mapping):
        return None

    workflow_data = variables.get(WORKFLOW_DATA_KEY)
    if isinstance(workflow_data, Mapping):
        return workflow_data
    return None


def extract_initial_state(
    fragments: Sequence[SchemaFragment],
    variables: Union[InstanceLookup, Mapping[str, Any], None],
) -> InitialState:
    """Collect the already-known value of every fragment field.

    The result has one mapping per fragment, in fragment order. Fields with no
    recorded value are left out; a recorded ``null`` is kept. Values are
    copied, so the snapshot is never shared with the result.
    """
    workflow_data = workflow_data_of(variables)
    if workflow_data is None:
        return [{} for _ in fragments]

    return [_extract_fragment(fragment, workflow_data) for fragment in fragments]


def _extract_fragment(
    fragment: SchemaFragment, workflow_data: Mapping[str, Any]
) -> FragmentValues:
    values: FragmentValues = {}
    for field in fragment["fields"]:
        value = workflow_data.get(field["name"], _MISSING)
        if value is not _MISSING:
            values[field["name"]] = copy.deepcopy(value)
    return values
