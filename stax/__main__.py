"""CLI entry point for the Stax interpreter.

Usage:
    python -m stax [-v|-vv|-vvv] [--tokens] <program_file>
    python -m stax [-v...] [--tokens] [--sentinel MARK]
    python -m stax [-v...] --emit-ast <program_file>
    python -m stax [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --tokens      Print every token before running the program
  --sentinel    Line that ends interactive input (default: !E)
  --emit-ast    Parse the given .stax file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Without a program file the source is read from standard input, line by
line, until the sentinel line or end of input. Debug information is
written to `debug.txt` in the current directory when verbosity is greater
than zero.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable

from .ast_json import ast_to_obj, ast_from_obj
from .errors import StaxError
from .interpreter import Interpreter
from .lexer import tokenize
from .parser import parse

DEFAULT_SENTINEL = '!E'


def read_interactive(lines: Iterable[str], sentinel: str = DEFAULT_SENTINEL) -> str:
    """Collect source lines until the sentinel line, keeping line breaks."""
    collected = []
    for line in lines:
        line = line.rstrip('\r\n')
        if line == sentinel:
            break
        collected.append(line + '\n')
    return ''.join(collected)


def read_source(program_file: Path) -> str:
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Stax stack language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--tokens', action='store_true', help='print the token list before running')
    parser.add_argument('--sentinel', default=DEFAULT_SENTINEL, help='line that ends interactive input')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='STAX_FILE', help='emit AST JSON for the given .stax file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='Stax program file (.stax) to execute')
    args = parser.parse_args(argv)

    try:
        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            program = parse(tokenize(read_source(program_file)))
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(ast_to_obj(program), out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            try:
                with open(ast_path, 'r', encoding='utf-8') as f:
                    program = ast_from_obj(json.load(f))
            except (ValueError, TypeError) as e:
                # json.JSONDecodeError is a ValueError too
                print(f"Runtime error: {e}", file=sys.stderr)
                sys.exit(1)
            Interpreter(debug_level=args.v).run(program)
            return

        # Default: execute a source file, or source typed on stdin
        if args.program:
            source = read_source(Path(args.program))
        else:
            source = read_interactive(sys.stdin, args.sentinel)
        tokens = tokenize(source)
        if args.tokens:
            for token in tokens:
                print(str(token))
        program = parse(tokens)
        Interpreter(debug_level=args.v).run(program)
    except StaxError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
