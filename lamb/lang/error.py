"""Error handling for the lamb language. Only GenericExceptions should be encountered during running: if another type
of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Exit statuses are carried by the exception classes:
    - 0: success
    - 1: internal error, unreadable file
    - 3: SyntaxException (LexError, ParseError), raised before anything is evaluated
    - 4: RuntimeException (UnboundIdentifier, ArityMismatch, TypeMismatch, DivisionByZero, MemoryAccessError)
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a lamb error/warning. Snippets in exprs are
    substituted into msg and bolded; position (anything with line and column attributes) points at the offending
    source text.
    """
    EXIT_CODE = 1

    def __init__(self, msg, exprs=None, position=None, length=1, diagnosis=True, internal=False):
        """Parses args for GenericException or warning."""
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        self.plain = msg.format(*exprs)
        self.msg = msg.format(*(colored(str(expr), attrs=["bold"]) for expr in exprs))  # color expr snippets

        self.position = position
        self.length = length  # number of characters to highlight from position
        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.plain)

    def locate(self, position, length=1):
        """Attaches position if the error was raised somewhere that did not know it. Returns self."""
        if self.position is None:
            self.position = position
            self.length = length
        return self


class SyntaxException(GenericException):
    """Superclass for errors found before evaluation starts."""
    EXIT_CODE = 3


class LexError(SyntaxException):
    """Unrecognized character, unterminated character literal or malformed number. Scanning continues past a bad
    token, so every other error found in the same source is kept in others.
    """

    def __init__(self, position, reason, text=""):
        self.reason = reason
        self.text = text
        self.others = []

        if text:
            super().__init__(reason + " '{}'", text, position, length=len(text))
        else:
            super().__init__(reason, position=position)


class ParseError(SyntaxException):
    """Structural violation of the grammar."""

    def __init__(self, position, expected, found, length=1):
        self.expected = expected
        self.found = found
        super().__init__("expected {} but found {}", [expected, found], position, length)


class RuntimeException(GenericException):
    """Superclass for errors that halt evaluation. Output already written to the console stays."""
    EXIT_CODE = 4


class UnboundIdentifier(RuntimeException):

    def __init__(self, name, position=None, reason="is not bound"):
        self.name = name
        super().__init__("'{}' " + reason, name, position, length=len(name))


class ArityMismatch(RuntimeException):
    """A function was applied to the wrong number of arguments. There is no currying."""

    def __init__(self, name, expected, got, position=None):
        self.name = name
        self.expected = expected
        self.got = got
        plural = "" if expected == 1 else "s"
        super().__init__(f"'{{}}' expects {expected} argument{plural}, got {got}", name, position)


class TypeMismatch(RuntimeException):
    """A non-function was applied, or a function was used where a number is required."""

    def __init__(self, expected, found, position=None):
        self.expected = expected
        self.found = found
        super().__init__("expected {} but got {}", [expected, found], position)


class DivisionByZero(RuntimeException):

    def __init__(self, dividend, position=None):
        self.dividend = dividend
        super().__init__("division of {} by zero", dividend, position)


class MemoryAccessError(RuntimeException):
    """Invalid pointer, double free or negative size. Named so as not to shadow Python's MemoryError."""

    def __init__(self, reason, address=None, position=None):
        self.reason = reason
        self.address = address
        if address is None:
            super().__init__(reason, position=position)
        else:
            super().__init__(reason + ": {}", address, position)


class RecursionDepthExceeded(RuntimeException):

    def __init__(self):
        super().__init__("maximum recursion depth exceeded (see --recursion-limit)", diagnosis=False)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom lamb errors/warnings. Also the
    single place where lamb reports anything besides program output: warnings and evaluation trace steps go through
    here, and all of it is written to stderr so that stdout only carries program output.
    """
    ERROR = "red"
    WARNING = "magenta"
    TRACE = "cyan"

    def __init__(self, fatal=True, trace=False, echo=True, stream=None):
        self.fatal = fatal
        self.trace = trace
        self.echo = echo      # whether or not to print anything at all
        self.stream = stream  # defaults to sys.stderr at print time

        self.sources = {}  # path: source text, insertion-ordered
        self.path = None   # path of the source currently being run

        self.diagnostics = []  # every error thrown, in order
        self.exit_code = 0

    def register_source(self, path, source):
        """Registers source under path and makes it the current source. Should be called prior to Session add."""
        self.sources[path] = source
        self.path = path

    def _print(self, text):
        if self.echo:
            print(text, file=self.stream if self.stream is not None else sys.stderr)

    def _source_line(self, line):
        source = self.sources.get(self.path)
        if source is None:
            return None

        lines = source.splitlines()
        if 0 < line <= len(lines):
            return lines[line - 1]
        return None

    def _location(self, error):
        """Returns 'file:line:col: ' for error, or the bare file name if error has no position."""
        path = f"{self.path}:" if self.path else ""
        if error.position is None:
            return f"{path} " if path else ""
        return f"{path}{error.position.line}:{error.position.column}: "

    def diagnose(self, error, warning=False):
        """Returns offending line of error with the offending part highlighted and bolded, or None."""
        if error.internal or not error.diagnosis or error.position is None:
            return None

        line = self._source_line(error.position.line)
        if line is None:
            return None

        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        start = error.position.column - 1
        end = max(min(start + error.length, len(line)), start + 1)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        warning = GenericException(*args, **kwargs)

        msg = colored(self._location(warning), attrs=["bold"])
        msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + warning.msg
        self._print(msg)

        diagnosis = self.diagnose(warning, warning=True)
        if diagnosis:
            self._print(diagnosis)

    def register_step(self, kind, expr):
        """Prints one evaluation step when tracing is enabled."""
        if self.trace:
            self._print(colored(f"[{kind}] ", ErrorHandler.TRACE) + str(expr))

    def throw(self, error):
        """Throws error, which must be a GenericException. If fatal, exits with error's exit status; otherwise the
        error is recorded in self.diagnostics and self.exit_code.
        """
        self.diagnostics.append(error)
        self.exit_code = error.EXIT_CODE

        msg = colored(self._location(error), attrs=["bold"])
        if error.internal:
            msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])
        msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        self._print(msg)

        diagnosis = self.diagnose(error)
        if diagnosis:
            self._print(diagnosis)

        for other in getattr(error, "others", []):
            self._print(colored(self._location(other), attrs=["bold"]) + other.msg)
            diagnosis = self.diagnose(other)
            if diagnosis:
                self._print(diagnosis)

        if self.fatal:
            sys.exit(error.EXIT_CODE)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(RecursionDepthExceeded())
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", [exc_type.__name__, exc_val], internal=True))

        return not do_exit
