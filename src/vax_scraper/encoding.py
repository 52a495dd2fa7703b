# ==============================================================================
#  Copyright 2025 Matthew Pounsett <matt@conundrum.com>
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# ==============================================================================
"""Repair of mis-decoded Polish text found in VAX listing pages.

The listing pages are served as UTF-8, but some of the text inside them has
been through one or more wrong ISO-8859-2/Windows code page round trips before
it reached the page.  The repair here is a plain ordered search-and-replace
over REPAIR_TABLE, where earlier entries are more specific than later ones.
Anything not in the table passes through untouched.
"""

import logging
import re

logger = logging.getLogger(__name__)

# Encodings tried, in order, when raw page bytes have to be turned into text
CANDIDATE_ENCODINGS = ("utf-8", "iso-8859-2")

# Code pages that the UTF-8 bytes of a Polish letter get wrongly decoded as
MISDECODINGS = ("cp1252", "latin-1", "cp1250", "iso-8859-2")

POLISH_LETTERS = "ąćęłńóśźżĄĆĘŁŃÓŚŹŻ"

MAX_DESCRIPTION_LENGTH = 200
ELLIPSIS = "..."

# Whole words and phrases seen on the site whose corruption lost bytes, so
# that the generic letter patterns below cannot recognize them.
OBSERVED_PHRASES: tuple[tuple[str, str], ...] = (
    ("Pytaj o dostÄpnoÅÄ", "Pytaj o dostępność"),
    ("zastosowaÅ przemysÅowych", "zastosowań przemysłowych"),
    ("dostÄpnoÅÄ", "dostępność"),
    ("dostępnoÅÄ", "dostępność"),
    ("dostępnołÄ", "dostępność"),
    ("pnoÅ›Ä", "pność"),
    ("moduÅowy", "modułowy"),
    ("zastosowañ", "zastosowań"),
    ("prÄdowy", "prądowy"),
    ("pnoÅÄ", "pność"),
    ("dostÄp", "dostęp"),
)

# Price suffix variants that survive with their second byte intact
PRICE_SUFFIXES: tuple[tuple[str, str], ...] = (
    ("zĹ‚", "zł"),
    ("zÅ‚", "zł"),
)

# Lead bytes left alone after the continuation byte was dropped.  These are
# ambiguous ("Ä" may have been ą, ć or ę), one target is picked.
LOSSY_FALLBACKS: tuple[tuple[str, str], ...] = (
    ("zÅ", "zł"),
    ("Ä", "ę"),
    ("Å", "ł"),
)

_TAG_RE = re.compile(r"<[^>]+>")


def _misdecode(text: str, encoding: str) -> str:
    return text.encode("utf-8").decode(encoding)


def _letter_patterns() -> list[tuple[str, str]]:
    """Build corruption patterns for every Polish letter.

    Each letter is encoded as UTF-8 and decoded with each of MISDECODINGS,
    then the result is put through the same round trip once more to cover
    doubly corrupted text.  Combinations that are not decodable in a given
    code page are skipped.
    """
    # A pattern shared by two letters keeps the first one. iso-8859-2 "Ź" and
    # cp1250 "Ś" both corrupt to "Ĺš", which is repaired as "Ś".
    patterns: dict[str, str] = {}
    for letter in POLISH_LETTERS:
        for first in MISDECODINGS:
            try:
                once = _misdecode(letter, first)
            except UnicodeDecodeError:
                continue
            patterns.setdefault(once, letter)
            for second in MISDECODINGS:
                try:
                    twice = _misdecode(once, second)
                except UnicodeDecodeError:
                    continue
                patterns.setdefault(twice, letter)

    # Longer patterns go first so a double round trip is not half repaired
    # by the single round trip pattern hidden inside it.
    return sorted(patterns.items(), key=lambda item: len(item[0]), reverse=True)


REPAIR_TABLE: tuple[tuple[str, str], ...] = (
    *OBSERVED_PHRASES,
    *PRICE_SUFFIXES,
    *_letter_patterns(),
    *LOSSY_FALLBACKS,
)


def decode_document(content: bytes) -> str:
    """Decode raw page bytes using the first candidate encoding that fits.

    Args:
        content: Raw response body.

    Returns:
        The decoded text.
    """
    for encoding in CANDIDATE_ENCODINGS:
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError:
            logger.debug("Document is not valid %s", encoding)
            continue
        if encoding != CANDIDATE_ENCODINGS[0]:
            logger.info("Document decoded as %s", encoding)
        return text

    # Unreachable while the last candidate maps every byte value
    return content.decode(CANDIDATE_ENCODINGS[0], errors="replace")


def repair_text(text: str | bytes) -> str:
    """Restore Polish diacritics in text with known mojibake.

    Args:
        text: Text to repair. Bytes are decoded with decode_document first.

    Returns:
        The repaired, stripped text.
    """
    if isinstance(text, bytes):
        text = decode_document(text)

    for corrupted, correct in REPAIR_TABLE:
        if corrupted in text:
            text = text.replace(corrupted, correct)

    return text.strip()


def truncate_description(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    """Cut text down to limit characters, marking the cut with an ellipsis."""
    if len(text) > limit:
        return text[: limit - len(ELLIPSIS)] + ELLIPSIS
    return text


def clean_description(text: str) -> str:
    """Normalize a product description for storage.

    Markup and runs of whitespace are removed, the text is repaired and
    then truncated to MAX_DESCRIPTION_LENGTH characters.
    """
    text = _TAG_RE.sub("", text)
    text = " ".join(text.split())
    return truncate_description(repair_text(text))
