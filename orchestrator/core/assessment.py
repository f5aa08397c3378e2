from typing import List, Optional

from ..schemas.state import InitialState, MergedInitialState


def is_empty(state: InitialState) -> bool:
    """True when no fragment of ``state`` has a resolved field."""
    return all(not values for values in state)


def readonly_keys_of(state: InitialState) -> List[str]:
    """Field names with a value anywhere in ``state``, first occurrence first."""
    keys: List[str] = []
    for values in state:
        for key in values:
            if key not in keys:
                keys.append(key)
    return keys


def merge_initial_state(
    primary: InitialState, assessment: Optional[InitialState] = None
) -> MergedInitialState:
    """Pick the initial form state from the primary or the assessment instance.

    Assessment values are only used when the primary instance has no value for
    any field at all; in that case every field they fill in becomes read-only.
    There is no field-by-field mixing of the two sources.
    """
    if assessment is None or not is_empty(primary):
        return MergedInitialState(values=primary, readonly_keys=[])

    return MergedInitialState(
        values=assessment, readonly_keys=readonly_keys_of(assessment)
    )
