"""
Scope model

A Scope maps identifiers to values for expression and script evaluation.
It is an ordered merge of named layers: a layer pushed later shadows every
layer pushed before it. Scopes are immutable from the outside - pushing a
layer returns a new Scope and leaves the original untouched, which is what
gives m-var declarations their "subsequent siblings only" visibility.
"""

from collections import ChainMap
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


def identifier_normalize(name: str) -> str:
    """Expose hyphenated markup names as identifiers (data-title -> data_title)"""
    return name.replace('-', '_')


class Scope(Mapping[str, Any]):
    """
    Ordered merge of named layers with explicit precedence.

    Example:
        >>> scope = Scope().layer_push('parameters', {'a': 1, 'b': 2})
        >>> scope = scope.layer_push('instance', {'b': 3})
        >>> scope['a'], scope['b']
        (1, 3)
        >>> scope.layerNames_get()
        ['instance', 'parameters']
    """

    def __init__(self, layers: Optional[List[Tuple[str, Dict[str, Any]]]] = None) -> None:
        # highest precedence first, as ChainMap expects
        self._layers: List[Tuple[str, Dict[str, Any]]] = list(layers or [])
        self._chain: ChainMap = ChainMap(*[values for _, values in self._layers])

    def layer_push(self, name: str, values: Mapping[str, Any]) -> 'Scope':
        """Return a new Scope with ``values`` on top of this one"""
        layer = {identifier_normalize(key): value for key, value in values.items()}
        return Scope([(name, layer)] + self._layers)

    def layer_get(self, name: str) -> Dict[str, Any]:
        """Merged values of every layer called ``name`` (topmost wins)"""
        merged: Dict[str, Any] = {}
        for layer_name, values in reversed(self._layers):
            if layer_name == name:
                merged.update(values)
        return merged

    def layerNames_get(self) -> List[str]:
        return [name for name, _ in self._layers]

    def __getitem__(self, key: str) -> Any:
        return self._chain[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._chain)

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"Scope({self._layers!r})"
