"""Page-scoped state shared by the stages of one parse pass."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from ._constants import BASE_REJECT_CLASSES, NO_SIGNATURE_TAGS
from .dom import classes_of, has_class, is_element
from .links import LinkClassifier

if typ.TYPE_CHECKING:
    from bs4 import Tag

    from .config import WikiConfig


@dc.dataclass(slots=True)
class ParseContext:
    """Registries and lookups that live exactly as long as one parse pass.

    A new context is built for every pass, so anchors, classifier results and
    element sets never leak between trees.
    """

    config: WikiConfig
    root: Tag
    classifier: LinkClassifier = dc.field(init=False)
    reject_classes: tuple[str, ...] = dc.field(init=False)
    no_signature_elements: list[Tag] = dc.field(init=False)
    no_signature_ids: set[int] = dc.field(init=False)
    excluded_ids: set[int] = dc.field(init=False)
    signature_ending: re.Pattern[str] | None = dc.field(init=False)
    anchors: set[str] = dc.field(default_factory=set)
    has_outdents: bool = False

    def __post_init__(self) -> None:
        config = self.config
        self.classifier = LinkClassifier(config)
        self.reject_classes = (
            *BASE_REJECT_CLASSES,
            *config.foreign_classes,
            *((config.outdent_class,) if config.outdent_class else ()),
        )
        self.no_signature_elements = self._find_no_signature_elements()
        self.no_signature_ids = {id(element) for element in self.no_signature_elements}
        self.excluded_ids = set()
        for selector in config.excluded_selectors:
            self.excluded_ids.update(id(element) for element in self.root.select(selector))
        pattern = config.signature_ending_pattern
        if pattern:
            self.signature_ending = re.compile(
                pattern if pattern.endswith("$") else pattern + "$"
            )
        else:
            self.signature_ending = None

    def _find_no_signature_elements(self) -> list[Tag]:
        names = set(NO_SIGNATURE_TAGS)
        classes = set(self.config.no_signature_classes)
        return [
            element
            for element in self.root.find_all(True)
            if element.name in names or classes.intersection(classes_of(element))
        ]

    def exclude(self, elements: typ.Iterable[Tag]) -> None:
        """Exclude the subtrees of ``elements`` from timestamp scanning."""
        self.excluded_ids.update(id(element) for element in elements)

    def is_no_signature_element(self, node: object) -> bool:
        """Return whether ``node`` itself is a no-signature element."""
        return is_element(node) and id(node) in self.no_signature_ids

    def in_no_signature_element(self, node: Tag) -> bool:
        """Return whether ``node`` is or lies inside a no-signature element."""
        if id(node) in self.no_signature_ids:
            return True
        return any(id(parent) in self.no_signature_ids for parent in node.parents)

    def has_reject_class(self, node: object) -> bool:
        """Return whether ``node`` carries one of the reject classes."""
        return any(has_class(node, name) for name in self.reject_classes)

    def register_anchor(self, base: str) -> str:
        """Return ``base`` or a ``_2``, ``_3``... variant not yet registered."""
        anchor = base
        index = 2
        while anchor in self.anchors:
            anchor = f"{base}_{index}"
            index += 1
        self.anchors.add(anchor)
        return anchor


__all__ = ["ParseContext"]
