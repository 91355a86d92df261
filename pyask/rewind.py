"""
Support for going back to an earlier question.

Each answered question leaves a ResumePoint on the RewindStack. When the
user presses up (or shift-tab) during a read, the most recent point is
popped and a RewindRequested is raised. The session driver catches it
and asks that question again, with the recorded answer as the default.
"""

import logging


logger = logging.getLogger("pyask")


class ResumePoint:
    """Everything needed to ask an earlier question again."""

    def __init__(self, index, question, answer=None):
        self.index = index  # position in the session's list of steps
        self.question = question
        self.answer = answer

    def __repr__(self):
        return f"<ResumePoint {self.index} {self.question!r} answer={self.answer!r}>"


class RewindRequested(Exception):
    """Raised from within a read to jump back to an earlier question."""

    def __init__(self, resume_point):
        super().__init__(resume_point)
        self.resume_point = resume_point


class RewindStack:
    """The questions that can be gone back to, most recent last."""

    def __init__(self):
        self._points = []

    def __len__(self):
        return len(self._points)

    def __bool__(self):
        return bool(self._points)

    def __iter__(self):
        return iter(self._points)

    def remember(self, resume_point, answer):
        """Push a point, with the answer that was given (None to forget it)."""
        resume_point.answer = answer
        self._points.append(resume_point)

    def rewind_once(self):
        """Pop the most recent point, or return None if there is none."""
        if not self._points:
            return None
        point = self._points.pop()
        logger.info(f"rewinding to {point!r}")
        return point

    def reset(self):
        """Forget all points, e.g. after the answers have been acted upon."""
        self._points.clear()
