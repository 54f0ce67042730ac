"""Common interface for the dictionary flavor builders.

Every builder is a pure projection from postprocessed ``IntermediateEntry``
objects to Yomitan records. Builders never mutate entries, so several
flavors can be built from the same batch of entries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from yomitan_dict_builder.config import EditionRole, Flavor, Langs
from yomitan_dict_builder.core.models import IntermediateEntry
from yomitan_dict_builder.schema import TermEntry, TermMetaEntry

Output = TermEntry | TermMetaEntry


class DictionaryBuilder(ABC):
    """Base class for all flavor builders.

    Subclasses must implement:
    - keep(): Whether an entry belongs to this flavor's corpus selection
    - build(): Project one entry into Yomitan records

    Aggregating flavors (ipa-merged, glossary-extended) override build_all().
    """

    flavor: Flavor
    edition_role: EditionRole
    labels: tuple[str, ...] = ("term",)

    @abstractmethod
    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        """Whether to build records for this entry."""

    @abstractmethod
    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        """Project one entry into Yomitan records.

        Raises:
            SchemaConformanceError: A record cannot satisfy the Yomitan schema
        """

    def build_all(self, entries: Iterable[IntermediateEntry], langs: Langs) -> list[Output]:
        outputs: list[Output] = []
        for entry in entries:
            if self.keep(entry, langs):
                outputs.extend(self.build(entry, langs))
        return outputs

    def record_lang(self, langs: Langs) -> str | None:
        """Language code of the corpus records this flavor reads (None = every record)."""
        return langs.source
