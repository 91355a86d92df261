from .session import Session, Question
from .progress import with_progress


def main():
    """A small questionnaire to try out editing and going back."""

    session = Session()

    steps = [
        Question("Name", key="name"),
        Question("Password", key="password", echo="*", forget=True),
        Question("Color", key="color", choices=["red", "green", "blue"]),
        Question("Count", key="count", default=3),
        lambda answers: (
            Question("Really use so many", key="confirm", default=False)
            if answers["count"] > 9
            else None
        ),
        Question("Continue", key="go", default=True),
    ]

    print("Use the arrow keys to edit, tab to complete, and up to go back.")
    answers = session.run(steps)

    if answers["go"]:
        with with_progress("Saving your answers"):
            session.finalize()

    for key, value in answers.items():
        if key != "password":
            print(f"{key}: {value!r}")
