"""Dictionary flavor builders."""

from yomitan_dict_builder.config import Flavor

from .base import DictionaryBuilder, Output
from .glossary import GlossaryBuilder, GlossaryExtendedBuilder
from .ipa import IpaBuilder, IpaMergedBuilder
from .main import MainBuilder

BUILDERS: dict[Flavor, type[DictionaryBuilder]] = {
    Flavor.MAIN: MainBuilder,
    Flavor.IPA: IpaBuilder,
    Flavor.IPA_MERGED: IpaMergedBuilder,
    Flavor.GLOSSARY: GlossaryBuilder,
    Flavor.GLOSSARY_EXTENDED: GlossaryExtendedBuilder,
}


def get_builder(flavor: Flavor | str) -> DictionaryBuilder:
    """Instantiate the builder of a flavor.

    Raises:
        ValueError: Unknown flavor name
    """
    return BUILDERS[Flavor(flavor)]()


__all__ = [
    "BUILDERS",
    "DictionaryBuilder",
    "GlossaryBuilder",
    "GlossaryExtendedBuilder",
    "IpaBuilder",
    "IpaMergedBuilder",
    "MainBuilder",
    "Output",
    "get_builder",
]
