import argparse
import logging
import sys
from pathlib import Path

from .core.codegen import DIALECTS
from .core.diagnostics import CompileError
from .core.interpreter import Interpreter, InterpreterError
from .core.pipeline import CompilerConfig, StackCompiler
from .utils.term import print_diagnostic, print_error, print_info, print_stage, print_success

EXIT_OK = 0
EXIT_COMPILE_ERROR = 1
EXIT_INPUT_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def write_output(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')


def read_source(name: str) -> str:
    if name == '-':
        return sys.stdin.read()
    return Path(name).read_text(encoding='utf-8')


def main(argv=None):
    parser = argparse.ArgumentParser(prog='stackcc', description='Compile a C subset to x86-64 assembly')
    parser.add_argument('input', help="Source file, or '-' for stdin")
    parser.add_argument('-o', '--output', help='Output file for the assembly. If omitted it goes to stdout')
    parser.add_argument('--syntax', choices=sorted(DIALECTS), default=None,
                        help='Assembler dialect (default: $STACKCC_SYNTAX or nasm)')
    parser.add_argument('--run', action='store_true',
                        help='Evaluate main() with the reference interpreter and exit with its result')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(name)s: %(message)s',
    )

    config = CompilerConfig.from_env()
    config.verbose = args.verbose
    if args.syntax:
        config.output_format = args.syntax
    try:
        compiler = StackCompiler(config)
    except ValueError as e:
        print_error(str(e))
        return EXIT_INPUT_ERROR

    filename = '<stdin>' if args.input == '-' else args.input
    try:
        source = read_source(args.input)
    except (OSError, UnicodeDecodeError) as e:
        print_error(f"cannot read '{filename}': {e}")
        return EXIT_INPUT_ERROR

    try:
        if args.run:
            if args.verbose:
                print_stage(1, 2, f"Compiling {filename}")
            program = compiler.parse(source, filename)
        else:
            assembly = compiler.compile(source, filename)
    except CompileError as e:
        print_diagnostic(e)
        return EXIT_COMPILE_ERROR

    if args.run:
        if args.verbose:
            print_stage(2, 2, "Running main()")
        try:
            result = Interpreter(program).run('main')
        except InterpreterError as e:
            print_error(f"runtime error: {e}")
            return EXIT_RUNTIME_ERROR
        print_info(f"main() returned {result}")
        return result & 0xff

    if args.output:
        out_path = Path(args.output)
        try:
            write_output(out_path, assembly)
        except OSError as e:
            print_error(f"failed to write assembly: {e}")
            return EXIT_INPUT_ERROR
        if args.verbose:
            print_success(f"Assembly written to: {out_path}")
    else:
        sys.stdout.write(assembly)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
