"""Variable context threaded through task execution.

The context is the single piece of mutable state shared by every task of a
run, including tasks pulled in through include_tasks. It is passed
explicitly down the call chain; nothing reads it from module globals.
"""

from typing import Any, Iterator

ITEM = "item"


class VariableContext:
    """Ordered, string-keyed store of all variables visible to templates.

    Assigning an existing name overwrites its value in place, keeping its
    original position. Order only matters for deterministic iteration.

    Example:
        ctx = VariableContext({"env": "staging"})
        ctx["version"] = "1.2"
        "env" in ctx          # True
        ctx.names()           # ["env", "version"]
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._vars: dict[str, Any] = dict(initial or {})

    def __getitem__(self, key: str) -> Any:
        return self._vars[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._vars[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"VariableContext({self._vars!r})"

    def get(self, key: str, default: Any = None) -> Any:
        """Get a variable value with optional default."""
        return self._vars.get(key, default)

    def update(self, values: dict[str, Any]) -> None:
        """Merge values into the context, later keys overriding earlier ones."""
        self._vars.update(values)

    def remove(self, key: str) -> None:
        """Remove a variable if present."""
        self._vars.pop(key, None)

    def names(self) -> list[str]:
        """Get variable names in insertion order."""
        return list(self._vars)

    def as_dict(self) -> dict[str, Any]:
        """Get a shallow snapshot suitable for template rendering."""
        return dict(self._vars)

    def bind_item(self, value: Any) -> None:
        """Rebind the loop variable for one iteration.

        Any previous binding is dropped first; a None loop value leaves
        ``item`` unbound.
        """
        self.remove(ITEM)
        if value is not None:
            self._vars[ITEM] = value
