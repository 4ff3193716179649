"""Handles interactive/command-line mode for the lamb interpreter. Uses cmd as backend."""

import cmd

from lamb.lang.session import Session


class Shell(cmd.Cmd):
    """lamb interpreter shell."""
    intro = "lamb interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""

    def parseline(self, line):
        """'!' is negation in lamb, not a shell escape."""
        if line.lstrip().startswith("!"):
            return None, None, line
        return super().parseline(line)

    def default(self, line):
        """Executes arbitrary lamb statements."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            line, add_to_prev = self.sess.preprocess_line(self._tmp_line + line)

            if add_to_prev:
                self._tmp_line = line + "\n"
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.add(line)
            self.sess.run()

            if self.sess.results:
                print(self.sess.pop())

    def do_env(self, arg):
        """Lists the names bound at top level."""
        print(" ".join(self.sess.names))

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the lamb interpreter!\n\n"
              "lamb is a small functional language: numbers, closures and lexical scope, plus a\n"
              "manually managed heap (_alloc, _realloc, _free, _store, _load) and byte console\n"
              "(_put, _get). Booleans are just 1 and 0.\n\n"
              "Try it out by typing 'sq = \\x. x * x'. This will bind the lambda to the name 'sq'.\n"
              "Next, try typing 'sq(7)', giving 49 as the result. 'env' lists what is bound.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
