"""
City key normalisation.

Every lookup table in this service is keyed by an ASCII slug of the city or
resort name, so user-facing Turkish spellings must collapse onto the same key:

  "İstanbul"   ->  "istanbul"
  "ISTANBUL"   ->  "istanbul"
  "Şanlıurfa"  ->  "sanliurfa"
  "Sarıkamış"  ->  "sarikamis"
  "Palandöken" ->  "palandoken"

Dotted capital I and dotless i have no NFKD decomposition onto ASCII, so they
are mapped explicitly before the generic accent strip.
"""

from __future__ import annotations

import re
import unicodedata

_TURKISH_I = str.maketrans({"İ": "i", "I": "i", "ı": "i"})


def city_key(name: str) -> str:
    """Normalise a city or resort name to its lookup key.

    Returns an empty string when nothing alphanumeric survives.
    """
    translated = name.translate(_TURKISH_I)
    # Decompose unicode, strip combining characters (accents, cedillas, breves)
    decomposed = unicodedata.normalize("NFKD", translated)
    ascii_str = decomposed.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_str.lower()).strip("-")
