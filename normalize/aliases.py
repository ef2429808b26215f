"""
Name resolution tables for contributors and tech partners.
Keys are lower-cased and trimmed; values are the canonical spelling.
"""
from typing import Dict, Optional, Tuple

CONTRIBUTOR_ALIASES: Dict[str, str] = {
    # GitHub handle variations
    'silent-cipher': 'silent_cipher',
    'silent_cipher': 'silent_cipher',
    'matt-wong': 'MattWong-ca',
    'mattwong': 'MattWong-ca',
    'viraj-bhartiya': 'virajbhartiya',
    'virajb': 'virajbhartiya',
    # survey name variations to GitHub handles
    'matt wong': 'MattWong-ca',
    'matthew wong': 'MattWong-ca',
    'viraj bhartiya': 'virajbhartiya',
    'viraj b': 'virajbhartiya',
    'abhay upadhyay': 'Abhay-2811',
    'abhay u': 'Abhay-2811',
    'nick lionis': 'nijoe1',
    'nicholas lionis': 'nijoe1',
    'nikolaos lionis': 'nijoe1',
}

PARTNER_ALIASES: Dict[str, str] = {
    'ipfs': 'IPFS',
    'libp2p': 'Libp2p',
    'lib p2p': 'Libp2p',
    'fil-oz': 'Fil-Oz',
    'fil-b': 'Fil-B',
    'drand': 'Drand',
    'storacha': 'Storacha',
}

# (tokens that must all appear in the lower-cased name, canonical name)
DUPLICATE_NAME_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (('nick', 'lionis'), 'Nick Lionis'),
    (('manu', 'sheel'), 'Manu Sheel Gupta'),
)


def merged_aliases(base: Dict[str, str], extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Return base overlaid with extra; keys of extra are normalised the same way as base."""
    out = dict(base)
    for k, v in (extra or {}).items():
        out[str(k).strip().lower()] = str(v).strip()
    return out


def lookup(name: str, table: Dict[str, str]) -> str:
    """Case-insensitive, trimmed lookup; unresolved names come back trimmed but otherwise unchanged."""
    cleaned = (name or '').strip()
    return table.get(cleaned.lower(), cleaned)


def apply_duplicate_rules(name: str, rules=DUPLICATE_NAME_RULES) -> str:
    lowered = (name or '').lower()
    for tokens, canonical in rules:
        if all(t in lowered for t in tokens):
            return canonical
    return name
