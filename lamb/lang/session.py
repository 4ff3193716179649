"""Session control for lamb. Loads source (from a file or the command line), scans and parses it, and runs it against
one evaluator, so that in command-line mode bindings, heap and console outlive the line that made them.

Lex and parse errors are raised by add, before anything is evaluated; runtime errors are raised by run, after any
console output already written.
"""

from lamb.lang.environment import Environment
from lamb.lang.error import ErrorHandler, GenericException
from lamb.lang.evaluator import Evaluator
from lamb.lang.numerical import render
from lamb.lang.primitives import Console
from lamb.pure.parser import parse_source


class Session:
    """Governs a lamb session, with control over the scope of top-level bindings."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, cmd_line=False, source=None, stdin=None, stdout=None, **options):
        """If source is given it is run instead of the file at path, and path is only used in error messages. options
        are passed on to Evaluator (ieee_division, recursion_limit).
        """
        self.error_handler = error_handler

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.evaluator = Evaluator(error_handler, console=Console(stdin, stdout), **options)
        self.frame = Environment.ROOT  # top-level frame, extended by every program run in cmd_line mode

        self.to_exec = []  # parsed programs waiting to be run
        self.results = []  # values of programs that have been run

        if self.cmd_line:
            self.error_handler.fatal = False

        if source is not None:
            self.add(source)

        elif path != Session.SH_FILE:
            try:
                with open(path, "r") as file:
                    source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

            self.add(source)

        elif not cmd_line:
            raise GenericException("'{}' is a reserved filename", Session.SH_FILE)

    @staticmethod
    def preprocess_line(line):
        """Preprocesses a line from the command-line. Returns the line and whether or not it continues on the next
        line (unbalanced parentheses, or a trailing separator, operator or lambda head).
        """
        line = line.rstrip()
        add_to_prev = line.count("(") > line.count(")") or line.endswith(("\\", ".", ",", "=", "+", "-", "*", "/",
                                                                          "&", "|", "^", "<", ">", "!"))
        return line, add_to_prev

    def add(self, source):
        """Scans and parses source and queues it to be run. Raises LexError or ParseError."""
        self.error_handler.register_source(self.path, source)
        self.to_exec.append(parse_source(source, partial=self.cmd_line))

    def run(self):
        """Runs the queued programs in order. Console output is flushed even if an error is raised."""
        try:
            while self.to_exec:
                program = self.to_exec.pop(0)
                value, self.frame = self.evaluator.execute(program, self.frame)
                if value is not None:
                    self.results.append(value)
        finally:
            self.evaluator.console.flush()

    def pop(self):
        """Removes and returns the latest result, rendered for display."""
        return render(self.results.pop())

    @property
    def names(self):
        """Every user-visible name bound at top level, innermost first."""
        return [name for name in self.evaluator.environment.names(self.frame) if not name.startswith("_")]


def run(source, stdin=None, stdout=None, path="<source>", echo=False, **options):
    """Runs source as a complete program. Returns (exit_code, diagnostics): 0 and [] on success, otherwise the exit
    status of the error and the list of errors thrown. Diagnostics are only printed (to stderr) if echo.
    """
    error_handler = ErrorHandler(fatal=False, echo=echo)
    with error_handler:
        session = Session(error_handler, path, source=source, stdin=stdin, stdout=stdout, **options)
        session.run()
    return error_handler.exit_code, error_handler.diagnostics
