"""
ZeekScope Entropy Analyzer
Shannon entropy and encoding heuristics for strings such as DNS labels.

Higher entropy indicates more randomness, which can suggest encoded data
(DNS tunneling, DGA domains). Typical values:
    - English text: ~3.5-4.5
    - Random alphanumeric: ~5.7
    - Base64 encoded: ~5.5-6.0
    - Hex encoded: ~3.5-4.0

These are heuristics, not proofs. Long hex-looking hostnames (CDN object
names, hashes in labels) are flagged as "hex", and any long alphanumeric
label without punctuation also fits the base64 alphabet.
"""

import math
import re
from collections import Counter

HEX_PATTERN = re.compile(r"[0-9a-fA-F]+")
BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]+={0,2}")


def shannon_entropy(text: str) -> float:
    """
    Calculate Shannon entropy of a string in bits per character.

    Args:
        text: Input string

    Returns:
        -sum(p * log2(p)) over character frequencies; 0 for an empty string
    """
    if not text:
        return 0.0

    length = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def domain_label_entropy(domain: str) -> float:
    """
    Entropy of the data-carrying labels of a DNS name.

    Drops the rightmost two labels (SLD + TLD). Names with two labels or
    fewer use their leftmost label.
    """
    parts = domain.split(".")
    if len(parts) <= 2:
        return shannon_entropy(parts[0])
    return shannon_entropy(".".join(parts[:-2]))


def detect_encoding(text: str) -> str | None:
    """
    Guess whether a string looks hex or base64 encoded.

    Returns:
        "hex", "base64" or None
    """
    if HEX_PATTERN.fullmatch(text) and len(text) > 10 and len(text) % 2 == 0:
        return "hex"
    if BASE64_PATTERN.fullmatch(text) and len(text) > 10:
        return "base64"
    return None
