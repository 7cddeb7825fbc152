#!/usr/bin/env python3
'''
The script is used to munge a word or a wordlist into password candidates.
Features:
- Capitalization (title case + swapped case) and l33t substitutions.
- Prepend/append of common number and special character tokens.
- Duplication, word swaps and separator variants for multi-word lines.
- Insane mode (-1ns4n3): every capitalization crossed with every l33t spelling, single word only.
- $HEX[...] input lines are decoded before munging.
- Multiprocessing (tqdm) for large wordlists (-j / --processes).
- Option to output results to STDOUT for piping (--output-stdout).
'''
import os
import sys
import argparse
import multiprocessing
from typing import List, Tuple, Callable, Iterator, Optional, TextIO
from tqdm import tqdm

from munge_engine import (
    SUBSTITUTION_CARTESIAN,
    SUBSTITUTION_SINGLE,
    InvalidConfiguration,
    TechniqueConfig,
    iter_variants,
    process,
    validate_config,
)

CHUNK_SIZE = 64

# ==============================================================================
# A. INPUT / OUTPUT
# ==============================================================================

def iter_input_lines(input_filepath: str) -> Iterator[str]:
    """Yields each line of the wordlist without its trailing \\n or \\r\\n. A lone \\r stays in the word."""
    with open(input_filepath, 'r', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
        for line in f:
            if line.endswith('\r\n'):
                yield line[:-2]
            elif line.endswith('\n'):
                yield line[:-1]
            else:
                yield line


def count_input_lines(input_filepath: str) -> int:
    with open(input_filepath, 'rb') as f:
        return sum(1 for _ in f)


def make_sink(stream: TextIO) -> Callable[[str], None]:
    def sink(line: str):
        stream.write(line + '\n')
    return sink

# ==============================================================================
# B. WORKERS
# ==============================================================================

def worker_munge_line(task: Tuple[str, TechniqueConfig]) -> Tuple[str, int]:
    """Worker function for multiprocessing pool."""
    raw_line, config = task
    lines = list(iter_variants(raw_line, config))
    return ''.join(line + '\n' for line in lines), len(lines)


def munge_file(input_filepath: str, config: TechniqueConfig, stream: TextIO,
               processes: int = 1, progress: bool = True, status: TextIO = sys.stdout) -> Tuple[int, int]:
    '''Munges every line of input_filepath into stream. Returns (words, lines written).'''
    total_words = count_input_lines(input_filepath) if progress else None
    words = 0
    written = 0

    if processes <= 1:
        sink = make_sink(stream)
        for raw_line in tqdm(iter_input_lines(input_filepath), total=total_words,
                             desc="Munging words", unit=" words", disable=not progress):
            written += process(raw_line, config, sink)
            words += 1
        return words, written

    print(f"[MP] Using {processes} processes for munging.", file=status)
    tasks = ((raw_line, config) for raw_line in iter_input_lines(input_filepath))
    with multiprocessing.Pool(processes=processes) as pool:
        # imap keeps input order, the main process stays the only writer
        for block, count in tqdm(pool.imap(worker_munge_line, tasks, chunksize=CHUNK_SIZE),
                                 total=total_words, desc="Munging words", unit=" words",
                                 disable=not progress):
            stream.write(block)
            written += count
            words += 1
    return words, written

# ==============================================================================
# C. MAIN PROCESS FUNCTION
# ==============================================================================

def parser_check_positive(value):
    value = int(value)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"Invalid option: {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='munge',
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('-w', dest='word', default=None, help='Single word to munge.')
    parser.add_argument('-i', dest='input_file', default=None, help='Input wordlist file.')
    parser.add_argument('-o', dest='output_file', default=None, help='Output wordlist file.')
    parser.add_argument('--output-stdout', action='store_true',
                        help='Output the result to standard output (STDOUT) instead of creating a file. Informational messages are sent to STDERR.')

    techniques = parser.add_argument_group("Munging techniques")
    techniques.add_argument('--all', '-all', dest='all_techniques', action='store_true',
                            help='Enable all munging techniques (except -1ns4n3).')
    techniques.add_argument('-c', dest='capitalize', action='store_true', help='Capitalization.')
    techniques.add_argument('-cs', dest='substitute', action='store_true', help='Use l33t substitutions.')
    techniques.add_argument('-p', dest='prepend', action='store_true', help='Prepend numbers and special chars.')
    techniques.add_argument('-a', dest='append', action='store_true', help='Append numbers and special chars.')
    techniques.add_argument('-d', dest='duplicate', action='store_true', help='Duplicate word after munging.')
    techniques.add_argument('-ws', dest='word_swap', action='store_true', help='Generate word swaps for multi-word inputs.')
    techniques.add_argument('-1ns4n3', dest='insane', action='store_true',
                            help='Generate maximum capitalization and l33t variations (single word only).')
    techniques.add_argument('-ss', '--single-substitution', action='store_true',
                            help='Replace each l33t character with its first substitute only, instead of every combination.')

    runtime = parser.add_argument_group("Runtime")
    runtime.add_argument('-j', '--processes', type=parser_check_positive, default=1,
                         help='Number of worker processes for wordlist input (Default: 1).')
    runtime.add_argument('--no-progress', action='store_true', help='Do not show the progress bar.')
    return parser


def build_config(args: argparse.Namespace) -> TechniqueConfig:
    return TechniqueConfig.from_flags(
        all_techniques=args.all_techniques,
        capitalize=args.capitalize,
        substitute=args.substitute,
        prepend=args.prepend,
        append=args.append,
        duplicate=args.duplicate,
        word_swap=args.word_swap,
        insane=args.insane,
        substitution_mode=SUBSTITUTION_SINGLE if args.single_substitution else SUBSTITUTION_CARTESIAN,
    )


def run(args: argparse.Namespace, config: TechniqueConfig, stream: TextIO, status: TextIO) -> Tuple[int, int]:
    words = 0
    written = 0
    if args.word:
        written += process(args.word, config, make_sink(stream))
        words += 1
    if args.input_file:
        print(f"[+] Reading file: {args.input_file}", file=status)
        file_words, file_written = munge_file(
            args.input_file, config, stream,
            processes=args.processes,
            progress=not args.no_progress,
            status=status,
        )
        words += file_words
        written += file_written
    return words, written


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    status = sys.stderr if args.output_stdout else sys.stdout

    if not args.word and not args.input_file:
        print("[ERROR] Provide a single word with -w or an input file with -i.", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    try:
        config = validate_config(build_config(args), batch=args.input_file is not None)
    except InvalidConfiguration as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    if not args.output_stdout and not args.output_file:
        print("[ERROR] No output file specified. Use -o <file> or --output-stdout.", file=sys.stderr)
        return 1

    if args.input_file and not os.path.exists(args.input_file):
        print(f"[ERROR] Input file '{args.input_file}' does not exist.", file=sys.stderr)
        return 1

    if args.output_stdout and args.output_file:
        print(f"[WARNING] --output-stdout given, ignoring output file '{args.output_file}'.", file=sys.stderr)
    if config.substitution_mode == SUBSTITUTION_SINGLE and not (config.substitute or config.insane):
        print("[WARNING] -ss has no effect without -cs or -1ns4n3.", file=sys.stderr)

    print(f"[INFO] Techniques: {', '.join(config.enabled())} (substitution: {config.substitution_mode})", file=status)

    try:
        if args.output_stdout:
            if hasattr(sys.stdout, 'reconfigure'):
                sys.stdout.reconfigure(errors='surrogateescape')
            words, written = run(args, config, sys.stdout, status)
            sys.stdout.flush()
            destination = "STDOUT"
        else:
            with open(args.output_file, 'w', encoding='utf-8', errors='surrogateescape') as f:
                words, written = run(args, config, f, status)
            destination = args.output_file
    except (IOError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    print(f"[RESULT] Munged {words:,} words into {written:,} lines.", file=status)
    print(f"Munged wordlist saved to {destination}", file=status)
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
