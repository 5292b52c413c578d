"""Library of saved, optionally pinned filter patterns.

The library only manages the items. Activating one is the caller's job:
pass ``item.pattern`` to ``FilterState.toggle_specific``.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional

from linefocus.models.saved_pattern import SavedPattern


class SavedPatternLibrary:
    """Ordered collection of SavedPattern items keyed by id.

    Example usage:
        library = SavedPatternLibrary()
        todo = library.add(r"- \\[ \\]", name="Open tasks", pinned=True)
        state = state.toggle_specific(todo.pattern)
    """

    EDITABLE_FIELDS = frozenset({"name", "pattern", "pinned"})

    def __init__(
        self,
        items: Iterable[SavedPattern] = (),
        enable_template_variables: bool = False,
    ):
        self.enable_template_variables = enable_template_variables
        self._items: dict[str, SavedPattern] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate saved pattern id '{item.id}'")
            self._items[item.id] = item

    @classmethod
    def from_dicts(
        cls,
        entries: Iterable[dict],
        enable_template_variables: bool = False,
    ) -> "SavedPatternLibrary":
        """Build a library from plain dictionaries (e.g. TOML tables).

        Raises:
            pydantic.ValidationError: If an entry is malformed or its pattern
                does not compile.
            ValueError: If two entries share an id.
        """
        context = {"enable_template_variables": enable_template_variables}
        items = [SavedPattern.model_validate(entry, context=context) for entry in entries]
        return cls(items, enable_template_variables=enable_template_variables)

    def _validate(self, data: dict) -> SavedPattern:
        return SavedPattern.model_validate(
            data,
            context={"enable_template_variables": self.enable_template_variables},
        )

    def __iter__(self) -> Iterator[SavedPattern]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: str) -> Optional[SavedPattern]:
        return self._items.get(item_id)

    def pinned(self) -> list[SavedPattern]:
        """Return pinned items in insertion order."""
        return [item for item in self._items.values() if item.pinned]

    def add(
        self,
        pattern: str,
        name: Optional[str] = None,
        pinned: bool = False,
        id: Optional[str] = None,
    ) -> SavedPattern:
        """Create and store a new saved pattern.

        Raises:
            pydantic.ValidationError: If the pattern does not compile.
            ValueError: If the id is already taken.
        """
        data: dict[str, Any] = {"pattern": pattern, "name": name, "pinned": pinned}
        if id is not None:
            if id in self._items:
                raise ValueError(f"Duplicate saved pattern id '{id}'")
            data["id"] = id
        item = self._validate(data)
        self._items[item.id] = item
        return item

    def edit(self, item_id: str, **changes: Any) -> SavedPattern:
        """Change name, pattern or pinned flag of an item, keeping its id.

        Raises:
            KeyError: If no item has this id.
            ValueError: If a field other than name/pattern/pinned is given.
            pydantic.ValidationError: If the new pattern does not compile.
        """
        current = self._items.get(item_id)
        if current is None:
            raise KeyError(item_id)
        unknown = set(changes) - self.EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")

        item = self._validate({**current.model_dump(), **changes})
        self._items[item_id] = item
        return item

    def toggle_pin(self, item_id: str) -> SavedPattern:
        current = self._items.get(item_id)
        if current is None:
            raise KeyError(item_id)
        return self.edit(item_id, pinned=not current.pinned)

    def remove(self, item_id: str) -> SavedPattern:
        """Remove and return an item.

        Raises:
            KeyError: If no item has this id.
        """
        return self._items.pop(item_id)

    def to_dicts(self) -> list[dict]:
        """Serialize items for writing back to configuration."""
        return [item.model_dump(exclude_none=True) for item in self._items.values()]
