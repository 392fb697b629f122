"""
Keyword rules for spotting fundraising announcements and tagging them.

Matching is case-insensitive and anchored on alphanumeric boundaries, so
"ico" matches "ICO sale" but not "Mexico".
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

CHAIN_TAGS = ('SOL', 'ETH', 'SUI', 'ETH_L2s')

FUNDRAISING_KEYWORDS = [
    'raised', 'raises', 'raising', 'funding round', 'seed round', 'pre-seed',
    'series a', 'series b', 'series c', 'venture round', 'investment',
    'lead investor', 'led by', 'backed by', 'strategic investment', 'grant',
    'ecosystem fund', 'private round', 'public sale', 'ido', 'ieo', 'ico',
]

NEGATIVE_KEYWORDS = [
    'price analysis', 'market recap', 'opinion', 'editorial', 'how to',
    'tutorial', 'guide', 'price prediction', 'meme', 'rumor',
]

INVESTOR_KEYWORDS = [
    'a16z', 'a16z crypto', 'andreessen horowitz', 'paradigm', 'binance labs', 'coinbase ventures',
    'electric capital', 'coinfund', 'multicoin', 'multicoin capital', 'polychain', 'pantera', 'hashed',
    'dragonfly', 'sequoia', 'jump crypto', 'animoca', 'animoca brands', 'framework', 'placeholder vc',
    'draper', 'alameda research', 'three arrows capital', 'delphi digital', 'wintermute', 'galaxy digital',
]

CHAIN_KEYWORDS: Dict[str, List[str]] = {
    'SOL': [
        'solana', 'sol', '$sol', 'spl token', 'raydium', 'orca', 'jupiter', 'pyth', 'jito', 'helium', 'marinade',
    ],
    'ETH': [
        'ethereum', 'eth', '$eth', 'erc-20', 'erc20', 'erc-721', 'erc-1155', 'l1 ethereum', 'mainnet ethereum',
        'uniswap', 'aave', 'makerdao', 'compound', 'curve finance', 'yearn', 'ens',
    ],
    'SUI': [
        'sui', '$sui', 'move language', 'sui foundation', 'sui network',
    ],
    'ETH_L2s': [
        'arbitrum', 'optimism', 'op mainnet', 'base', 'zksync', 'starknet', 'polygon zkevm', 'linea', 'scroll',
        'taiko', 'mantle', 'boba', 'metis', 'fuel', 'mode network', 'blast l2', 'zora network', 'world chain',
        'kroma', 'layer 2', 'l2', 'rollup', 'optimistic rollup', 'zk rollup',
    ],
}

# Project names that imply a chain even when the chain itself is not mentioned
PROJECT_CHAIN_MAP: Dict[str, str] = {
    'jupiter': 'SOL', 'pyth': 'SOL', 'jito': 'SOL', 'raydium': 'SOL', 'orca': 'SOL', 'marinade': 'SOL',
    'uniswap': 'ETH', 'aave': 'ETH', 'makerdao': 'ETH', 'compound': 'ETH', 'curve': 'ETH', 'ens': 'ETH',
    'sui foundation': 'SUI', 'sui network': 'SUI',
    'arbitrum': 'ETH_L2s', 'optimism': 'ETH_L2s', 'op mainnet': 'ETH_L2s', 'base': 'ETH_L2s',
    'zksync': 'ETH_L2s', 'starknet': 'ETH_L2s', 'polygon zkevm': 'ETH_L2s', 'linea': 'ETH_L2s',
    'scroll': 'ETH_L2s', 'taiko': 'ETH_L2s', 'mantle': 'ETH_L2s', 'mode': 'ETH_L2s', 'blast': 'ETH_L2s',
    'zora': 'ETH_L2s', 'world chain': 'ETH_L2s', 'kroma': 'ETH_L2s',
}

# Chains and projects without a native token
TOKENLESS_NAMES = {'base', 'linea', 'scroll', 'taiko'}

FUNDING_STAGES: List[Tuple[str, Tuple[str, ...]]] = [
    ('Pre-Seed', ('pre-seed',)),
    ('Seed', ('seed',)),
    ('Series A', ('series a',)),
    ('Series B', ('series b',)),
    ('Series C', ('series c',)),
    ('Grant', ('grant',)),
    ('Private', ('private round',)),
    ('Public', ('public sale', 'ido', 'ieo', 'ico')),
]

MONEY_SYMBOL_PATTERN = re.compile(r'\$\s?\d{1,3}(?:[,.]\d{3})*(?:\.\d+)?(?:\s?[KkMmBb]\b)?')
MONEY_LONG_FORM_PATTERN = re.compile(r'\b\d+(?:\.\d+)?\s?(?:million|billion|thousand)\b', re.IGNORECASE)


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> Pattern[str]:
    return re.compile(rf'(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])')


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    return any(_keyword_pattern(keyword).search(lower) for keyword in keywords)


def is_fundraising(text: str) -> bool:
    """Mentions a raise and is not analysis/opinion content"""
    return contains_any(text, FUNDRAISING_KEYWORDS) and not contains_any(text, NEGATIVE_KEYWORDS)


def detect_funding_stage(text: str) -> Optional[str]:
    lower = text.lower()
    for stage, keywords in FUNDING_STAGES:
        if any(_keyword_pattern(keyword).search(lower) for keyword in keywords):
            return stage
    return None


def tag_chains(text: str) -> Tuple[List[str], bool]:
    """
    Chain tags mentioned in the text.

    Returns:
        (chains in CHAIN_TAGS order, tokenless flag)
    """
    lower = text.lower()
    found = set()

    for chain, keywords in CHAIN_KEYWORDS.items():
        if contains_any(lower, keywords):
            found.add(chain)

    for project, chain in PROJECT_CHAIN_MAP.items():
        if _keyword_pattern(project).search(lower):
            found.add(chain)

    tokenless = contains_any(lower, TOKENLESS_NAMES)
    return [chain for chain in CHAIN_TAGS if chain in found], tokenless


def extract_funding_amount(text: str) -> Optional[str]:
    """First amount like "$15M", "$1,200,000" or "15 million"."""
    match = MONEY_SYMBOL_PATTERN.search(text) or MONEY_LONG_FORM_PATTERN.search(text)
    return match.group(0).strip() if match else None


def _canonical_investor(name: str) -> str:
    return ' '.join(word[0].upper() + word[1:] if len(word) > 2 else word.upper() for word in name.split(' '))


def find_investors(text: str) -> List[str]:
    lower = text.lower()
    investors: List[str] = []
    for keyword in INVESTOR_KEYWORDS:
        if _keyword_pattern(keyword).search(lower):
            canonical = _canonical_investor(keyword)
            if canonical not in investors:
                investors.append(canonical)
    return investors
