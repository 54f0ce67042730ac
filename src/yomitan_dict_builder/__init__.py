"""yomitan_dict_builder: Wiktionary (kaikki.org) extracts → Yomitan dictionaries."""

from yomitan_dict_builder.config import BuildOptions, Flavor, Langs
from yomitan_dict_builder.pipeline import BuildReport, make_dictionary, make_langs

__version__ = "0.1.0"

__all__ = [
    "BuildOptions",
    "BuildReport",
    "Flavor",
    "Langs",
    "make_dictionary",
    "make_langs",
]
