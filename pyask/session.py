"""
Asking questions: prompts, defaults, choices, and going back.

A Session can ask single questions with ``ask()``, or a whole series with
``run()``. Only in the latter can the user press up (or shift-tab) to go
back to an earlier question: ``run()`` drives a loop over the steps, and
jumps back to the step of the popped ResumePoint when a read is rewound.
"""

import sys
import logging

from . import progress
from .config import Config
from .prompt import _read_line
from .rewind import RewindStack, ResumePoint, RewindRequested


logger = logging.getLogger("pyask")

ASK_OPTIONS = (
    "default",
    "choices",
    "indexed",
    "echo",
    "callback",
    "complete",
)


class Question:
    """A question for ``Session.run()``.

    The key is used in the returned answers, and defaults to the text.
    The options are those of ``Session.ask()``, plus ``forget``: when
    True, going back to this question does not offer the previous answer.
    """

    def __init__(self, text, key=None, forget=False, **options):
        for name in options:
            if name not in ASK_OPTIONS:
                raise TypeError(f"Invalid question option {name!r}")
        self.text = text
        self.key = text if key is None else key
        self.forget = forget
        self.options = options

    def __repr__(self):
        return f"<Question {self.key!r}>"


class Session:
    """An interactive session.

    Parameters:
        stdin: the input stream (default sys.stdin).
        stdout: the output stream (default sys.stdout).
        rewind: whether ``run()`` lets the user go back to earlier
            questions. Defaults to the PYASK_REWIND setting.
        context_kind: force a raw-mode implementation, see TerminalContext.
    """

    def __init__(self, stdin=None, stdout=None, rewind=None, context_kind=None):
        config = Config()
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.rewind_enabled = config.rewind if rewind is None else bool(rewind)
        self.context_kind = context_kind
        self.rewind_stack = RewindStack()

    def _write(self, text):
        self.stdout.write(text)
        self.stdout.flush()

    def ask(
        self,
        question,
        default=None,
        choices=None,
        indexed=False,
        echo=None,
        callback=None,
        complete=None,
    ):
        """Ask a question and return the answer.

        Parameters:
            question: the prompt, without ": " at the end.
            default: returned for an empty answer. Its type is also used
                to convert the answer (int, float, or bool via "y"/"n").
            choices: strings to choose from. An answer can be any unique
                prefix of a choice. Also used for tab-completion.
            indexed: list the choices as numbered lines, and allow picking
                one by its number.
            echo: show this instead of each typed character.
            callback: see LineEditor.
            complete: a callable that gives completion candidates for a
                prefix, instead of using the choices.

        Raises EOFError when the input ends without an answer.
        """
        return self._ask(
            question,
            default=default,
            choices=choices,
            indexed=indexed,
            echo=echo,
            callback=callback,
            complete=complete,
        )

    def _ask(
        self,
        question,
        default=None,
        choices=None,
        indexed=False,
        echo=None,
        callback=None,
        complete=None,
        rewind=None,
    ):
        # Dots from a progress indicator would garble the line we edit
        progress.stop_all()

        choices = None if choices is None else [str(c) for c in choices]

        if indexed and choices:
            for i, choice in enumerate(choices):
                self._write(f"{i + 1}: {choice}\n")

        while True:
            self._write(format_prompt(question, default, not indexed and choices))

            answer, exhausted = _read_line(
                self.stdin,
                self.stdout,
                echo=echo,
                choices=choices,
                complete=complete,
                rewind=rewind,
                callback=callback,
                context_kind=self.context_kind,
            )

            self._write("\n")

            if exhausted and not answer:
                # Asking again would get nothing either
                raise EOFError("end of input")

            if not answer:
                if default is not None:
                    return default
            elif choices:
                result = self._match_choice(answer, choices, indexed)
                if result is not None:
                    return result
            else:
                try:
                    return match_type(answer, default)
                except ValueError:
                    self._write("Please enter a number!\n")

    def _match_choice(self, answer, choices, indexed):
        if answer in choices:
            return answer
        matches = [c for c in choices if c.startswith(answer)]
        if len(matches) == 1:
            return matches[0]
        elif indexed and answer.strip().isdecimal():
            i = int(answer)
            if 1 <= i <= len(choices):
                return choices[i - 1]
        if len(matches) > 1:
            self._write(f"Please disambiguate: {' or '.join(matches)}?\n")
        else:
            self._write("Unknown answer, please try again!\n")
        return None

    def run(self, steps):
        """Ask a series of questions, and return a dict with the answers.

        Each step is a Question, a string (a question without options),
        or a callable that takes the answers so far and returns either of
        those, or None to skip the step.

        When rewinding is enabled, pressing up or shift-tab during a
        question goes back to the previous one, with the earlier answer
        as the default. The answers given from that point on are dropped.
        Questions asked before ``run()`` was called, or before
        ``finalize()`` was called from a step, can not be gone back to.
        """
        steps = list(steps)
        rewind = self.rewind_stack if self.rewind_enabled else None
        self.rewind_stack.reset()

        answers = {}
        answered = []  # (index, key) in the order answered
        defaults = {}  # index -> answer to offer after a rewind

        index = 0
        while index < len(steps):
            question = self._resolve_step(steps[index], answers)
            if question is None:
                index += 1
                continue

            options = dict(question.options)
            if index in defaults:
                options["default"] = defaults.pop(index)

            try:
                answer = self._ask(question.text, rewind=rewind, **options)
            except RewindRequested as err:
                point = err.resume_point
                self._write("\n")
                while answered and answered[-1][0] >= point.index:
                    answers.pop(answered.pop()[1], None)
                if point.answer is not None:
                    defaults[point.index] = point.answer
                index = point.index
                continue

            answers[question.key] = answer
            answered.append((index, question.key))
            if rewind is not None:
                point = ResumePoint(index, question)
                rewind.remember(point, None if question.forget else answer)
            index += 1

        return answers

    def _resolve_step(self, step, answers):
        if callable(step) and not isinstance(step, Question):
            step = step(dict(answers))
        if step is None or isinstance(step, Question):
            return step
        elif isinstance(step, str):
            return Question(step)
        raise TypeError(f"Invalid step {step!r}")

    def finalize(self):
        """Forget the questions asked so far.

        Questions asked after this can be gone back to, but the ones
        before can not. Use this after acting on the answers.
        """
        self.rewind_stack.reset()


def format_prompt(question, default=None, choices=None):
    msg = question

    if choices:
        msg += " (" + ", ".join(choices) + ")"

    if default is True:
        msg += " [Yn]"
    elif default is False:
        msg += " [yN]"
    elif default is not None:
        msg += f" [{default}]"

    return msg + ": "


def match_type(text, default):
    """Convert the answer to the type of the default."""
    if isinstance(default, bool):
        return text.upper().startswith("Y")
    elif isinstance(default, int):
        return int(text)
    elif isinstance(default, float):
        return float(text)
    return text
