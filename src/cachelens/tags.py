"""Tag catalog with derived groups.

A tag named ``"<group>:<leaf>"`` belongs to ``group``; the group is taken
from the first colon. Tags without a colon (or with a leading colon) are
standalone.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from cachelens.types import TagDefinition

_GROUP_SEPARATOR = ":"


def tag_group(name: str) -> str | None:
    """Return the group encoded in a tag name, or None for standalone tags."""
    index = name.find(_GROUP_SEPARATOR)
    if index > 0:
        return name[:index]
    return None


@dataclass(frozen=True, slots=True)
class TagValidation:
    """Result of splitting caller-supplied names into known and unknown."""

    valid: list[str]
    invalid: list[str]
    expanded_tags: set[str]


class TagStore:
    """Immutable index over a fixed tag catalog."""

    def __init__(self, tags: Iterable[TagDefinition | str]) -> None:
        self._tags: dict[str, TagDefinition] = {}
        self._groups: dict[str, dict[str, None]] = {}  # group -> ordered tags
        self._tag_to_group: dict[str, str] = {}

        for item in tags:
            tag = TagDefinition(item) if isinstance(item, str) else item
            if tag.name in self._tags:
                raise ValueError(f"Duplicate tag: {tag.name!r}")
            self._tags[tag.name] = tag

            group = tag_group(tag.name)
            if group is not None:
                self._groups.setdefault(group, {})[tag.name] = None
                self._tag_to_group[tag.name] = group

    @classmethod
    def from_mapping(cls, tags: Mapping[str, str | None]) -> "TagStore":
        """Build a store from ``{name: description}``."""
        return cls(TagDefinition(name, description) for name, description in tags.items())

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, name: object) -> bool:
        return name in self._tags

    def has_tag(self, name: str) -> bool:
        return name in self._tags

    def has_group(self, name: str) -> bool:
        return name in self._groups

    def get_tags_by_group(self, group: str) -> list[str]:
        """All tag names in ``group``; empty for an unknown group."""
        return list(self._groups.get(group, ()))

    def get_tag_group(self, name: str) -> str | None:
        return self._tag_to_group.get(name)

    def get_all_groups(self) -> list[str]:
        return list(self._groups)

    def get_standalone_tags(self) -> list[str]:
        return [name for name in self._tags if _GROUP_SEPARATOR not in name]

    def expand_groups_to_tags(self, items: Iterable[str]) -> set[str]:
        """Resolve a mix of group and tag names to the set of concrete tags.

        Names that are neither a known group nor a known tag are dropped;
        use :meth:`validate_tags_and_groups` to report them.
        """
        expanded: set[str] = set()
        for item in items:
            if item in self._groups:
                expanded.update(self._groups[item])
            elif item in self._tags:
                expanded.add(item)
        return expanded

    def validate_tags_and_groups(self, items: Iterable[str]) -> TagValidation:
        valid: list[str] = []
        invalid: list[str] = []
        for item in items:
            if self.has_tag(item) or self.has_group(item):
                valid.append(item)
            else:
                invalid.append(item)

        return TagValidation(
            valid=valid,
            invalid=invalid,
            expanded_tags=self.expand_groups_to_tags(valid),
        )

    def get_tag(self, name: str) -> TagDefinition | None:
        return self._tags.get(name)

    def get_all_tags(self) -> list[TagDefinition]:
        return list(self._tags.values())

    def get_group_structure(self) -> dict[str, list[str]]:
        """Debug helper mapping each group to its tags."""
        return {group: list(tags) for group, tags in self._groups.items()}
