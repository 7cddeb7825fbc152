#!/usr/bin/env python3
'''
Word mangling engine used by munge.py to widen password wordlists.
Features:
- Exhaustive capitalization enumeration (one bit per character).
- l33t substitutions, either full Cartesian branching or a single pass.
- Numeric/special token prepend, append and wrap combinations.
- Pairwise word swaps for multi-word inputs.
- $HEX[...] literal decoding for inputs produced by hashcat/JtR tooling.
'''
import re
import sys
import binascii
import itertools
from typing import List, Dict, Callable, Iterator, NamedTuple

# ==============================================================================
# A. STATIC TABLES
# ==============================================================================

# --- SUBSTITUTION TABLE ---
LEET_MAP: Dict[str, List[str]] = {
    'a': ['@', '4'],
    'A': ['@', '4'],
    'e': ['3'],
    'E': ['3'],
    'i': ['!', '1'],
    'I': ['!', '1'],
    'o': ['0'],
    'O': ['0'],
    's': ['$', '5'],
    'S': ['$', '5'],
}

# --- AFFIX TOKEN SETS ---
NUMBER_TOKENS: List[str] = [
    "20", "21", "22", "23", "24", "25", "26",
    "1", "12", "21", "123", "321", "1234", "4321", "12345", "54321", "123456", "654321",
    "1234567", "7654321", "12345678", "87654321", "123456789", "987654321",
    "2018", "2019", "2020", "2021", "2022", "2023", "2024", "2025", "2026",
]

SPECIAL_TOKENS: List[str] = [
    " ", "_", ".", "*", "&", "&&",
    "!", "!!", "!!!", "!!!!", "!!!!!",
    "@", "@@", "@@@",
    "#", "##", "###",
    "$", "$$", "$$$", "$$$$", "$$$$$",
    "!@", "!@#", "!@#$", "!@#$%", "$#@!", "#@!", "@!",
]

SEPARATOR_REPLACEMENTS = ("", "^", ".")

SUBSTITUTION_CARTESIAN = "cartesian"
SUBSTITUTION_SINGLE = "single"
SUBSTITUTION_MODES = (SUBSTITUTION_CARTESIAN, SUBSTITUTION_SINGLE)

HEX_PREFIX = "$HEX["
__hexregex__ = re.compile(r'^\$HEX\[(.*)\]$', re.DOTALL)

# ==============================================================================
# B. CONFIGURATION AND ERRORS
# ==============================================================================

class MungeError(Exception):
    pass


class InvalidConfiguration(MungeError, ValueError):
    pass


class MalformedHexLiteral(MungeError, ValueError):
    pass


class TechniqueConfig(NamedTuple):
    capitalize: bool = False
    substitute: bool = False
    prepend: bool = False
    append: bool = False
    duplicate: bool = False
    word_swap: bool = False
    insane: bool = False
    substitution_mode: str = SUBSTITUTION_CARTESIAN

    @classmethod
    def from_flags(cls, all_techniques: bool = False, **flags) -> 'TechniqueConfig':
        ''' --all switches on every technique except insane mode '''
        if all_techniques:
            for name in ('capitalize', 'substitute', 'prepend', 'append', 'duplicate', 'word_swap'):
                flags[name] = True
        return cls(**flags)

    @property
    def affixes(self) -> bool:
        return self.prepend or self.append

    def enabled(self) -> List[str]:
        switches = ('capitalize', 'substitute', 'prepend', 'append', 'duplicate', 'word_swap', 'insane')
        return [name for name in switches if getattr(self, name)]


def validate_config(config: TechniqueConfig, batch: bool = False) -> TechniqueConfig:
    """
    Checks the technique switches before any word is processed.
    batch is True when the words come from a wordlist file.
    """
    enabled = config.enabled()
    if not enabled:
        raise InvalidConfiguration("Please specify at least one option for modification (or use --all).")
    if config.substitution_mode not in SUBSTITUTION_MODES:
        raise InvalidConfiguration(f"Unknown substitution mode '{config.substitution_mode}'.")
    if config.insane:
        if len(enabled) > 1:
            others = ", ".join(name for name in enabled if name != 'insane')
            raise InvalidConfiguration(f"--1ns4n3 cannot be combined with other techniques ({others}).")
        if batch:
            raise InvalidConfiguration("--1ns4n3 flag can only be used with single-word inputs.")
    return config

# ==============================================================================
# C. TRANSFORMATION ROUTINES
# ==============================================================================

def case_variants(word: str) -> Iterator[str]:
    '''
    Yields 2**len(word) variants. Bit j of the counter upper-cases character j.
    Non-letters still take a bit, so words with digits or symbols repeat variants.
    '''
    lower = [char.lower() for char in word]
    upper = [char.upper() for char in word]
    for mask in range(1 << len(word)):
        yield ''.join(upper[j] if (mask >> j) & 1 else lower[j] for j in range(len(word)))


def leet_variants(word: str, mode: str = SUBSTITUTION_CARTESIAN) -> Iterator[str]:
    """
    Yields l33t spellings of word.

    cartesian: one branch per listed replacement, so "pass" gives 1*2*2*2 words,
               ordered by the declaration order of each replacement list.
    single:    every mapped character takes its first replacement, one result.
    """
    if mode == SUBSTITUTION_SINGLE:
        yield ''.join(LEET_MAP.get(char, [char])[0] for char in word)
        return
    options = [LEET_MAP.get(char, [char]) for char in word]
    for combo in itertools.product(*options):
        yield ''.join(combo)


def affix_variants(word: str, prepend: bool = False, append: bool = False) -> Iterator[str]:
    '''Number/special token combinations around word, streamed pair by pair.'''
    if not (prepend or append):
        return
    for num in NUMBER_TOKENS:
        for char in SPECIAL_TOKENS:
            if prepend:
                yield num + word
                yield num + char + word
                yield char + num + word
            if append:
                yield word + num
                yield word + num + char
                yield word + char + num
            if prepend and append:
                yield char + num + word + num + char
                yield char + num + word + char + num
                yield num + char + word + char + num
                yield num + char + word + num + char


def word_swaps(word: str) -> List[str]:
    """Single transpositions of whitespace separated tokens, (0,1),(0,2)...(1,2)..."""
    fields = word.split()
    swaps: List[str] = []
    for i, j in itertools.combinations(range(len(fields)), 2):
        swapped = list(fields)
        swapped[i], swapped[j] = swapped[j], swapped[i]
        swaps.append(' '.join(swapped))
    return swaps


def title_case(word: str) -> str:
    '''Upper-cases the first letter of each word, the rest is left untouched.'''
    chars = []
    at_boundary = True
    for char in word:
        chars.append(char.upper() if at_boundary else char)
        at_boundary = is_word_separator(char)
    return ''.join(chars)


def is_word_separator(char: str) -> bool:
    # ASCII: anything but letters, digits and '_'. Beyond ASCII only spaces separate.
    if ord(char) < 0x80:
        return not (char.isalnum() or char == '_')
    return char.isspace()


def duplicate(word: str) -> str:
    return word + word


def separator_variants(word: str) -> List[str]:
    if ' ' not in word:
        return []
    return [word.replace(' ', sep) for sep in SEPARATOR_REPLACEMENTS]

# ==============================================================================
# D. ORCHESTRATION
# ==============================================================================

def decode_hex_literal(line: str) -> str:
    """
    Decodes a $HEX[...] line. Lines without the marker are returned as they are.
    Raises MalformedHexLiteral for odd-length or non-hex payloads.
    """
    match = __hexregex__.match(line)
    if match is None:
        if line.startswith(HEX_PREFIX):
            raise MalformedHexLiteral(f"Missing closing bracket in {line!r}")
        return line
    try:
        raw = binascii.unhexlify(match.group(1))
    except (binascii.Error, ValueError) as e:
        raise MalformedHexLiteral(f"Cannot decode {line!r}: {e}") from e
    return raw.decode('utf-8', errors='surrogateescape')


def report_error(message: str):
    print(f"[-] {message}", file=sys.stderr)


def mangle_base(base: str, config: TechniqueConfig) -> Iterator[str]:
    ''' Technique output for one base word, in the order it is written out '''
    if config.insane:
        for variation in case_variants(base):
            yield from leet_variants(variation, config.substitution_mode)
    else:
        if config.capitalize:
            yield title_case(base)
            yield base.swapcase()
        if config.substitute:
            yield from leet_variants(base, config.substitution_mode)

    if config.duplicate:
        yield duplicate(base)

    yield from separator_variants(base)


def iter_variants(raw_line: str, config: TechniqueConfig,
                  on_error: Callable[[str], None] = report_error) -> Iterator[str]:
    """
    Lazily yields every line produced for one input line.

    The decoded word comes first, then for the word and each of its swaps the
    technique output, every mangled string followed by its affix combinations.
    Swapped bases are written out before their own technique output.
    """
    word = raw_line
    if raw_line.startswith(HEX_PREFIX):
        try:
            word = decode_hex_literal(raw_line)
        except MalformedHexLiteral as e:
            on_error(str(e))

    yield word

    bases = [word]
    if config.word_swap:
        bases.extend(word_swaps(word))

    for index, base in enumerate(bases):
        if index > 0:
            yield base
        if config.affixes:
            yield from affix_variants(base, config.prepend, config.append)
        for mangled in mangle_base(base, config):
            yield mangled
            if config.affixes:
                yield from affix_variants(mangled, config.prepend, config.append)


def process(raw_line: str, config: TechniqueConfig, sink: Callable[[str], None],
            on_error: Callable[[str], None] = report_error) -> int:
    '''Writes every variant of raw_line to sink and returns how many lines were written.'''
    count = 0
    for line in iter_variants(raw_line, config, on_error):
        sink(line)
        count += 1
    return count
