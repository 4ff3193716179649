"""Runs a lamb source file, or the interactive shell when no file is given. Also uses the error handling context
manager, which turns lamb errors into diagnostics and exit statuses. Called from the lamb executable script.
"""

import argparse
import sys

from lamb.lang.error import ErrorHandler
from lamb.lang.evaluator import Evaluator
from lamb.lang.numerical import render
from lamb.lang.session import Session
from lamb.lang.shell import Shell


def main(argv=None):
    """Runs lamb interpreter. Called from lamb executable script."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="lamb")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("-q", "--quiet", action="store_true", help="do not print the program's final value")
        parser.add_argument("--trace", action="store_true", help="print every function application to stderr")
        parser.add_argument("--ieee-division", action="store_true",
                            help="division by zero gives inf/nan with a warning instead of an error")
        parser.add_argument("--recursion-limit", type=int, default=Evaluator.RECURSION_LIMIT,
                            help=f"python recursion limit while evaluating (default {Evaluator.RECURSION_LIMIT})")
        args = parser.parse_args(argv)

        error_handler.trace = args.trace
        options = {"ieee_division": args.ieee_division, "recursion_limit": args.recursion_limit}

        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False, **options)
            sess.run()

            if not args.quiet:
                for result in sess.results:
                    print(render(result))

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True, **options)).cmdloop()

    return error_handler.exit_code


if __name__ == "__main__":
    sys.exit(main())
