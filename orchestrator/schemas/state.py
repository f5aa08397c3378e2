from typing import Any, Dict, List, TypedDict

FragmentValues = Dict[str, Any]

InitialState = List[FragmentValues]


class MergedInitialState(TypedDict):
    values: InitialState
    readonly_keys: List[str]
