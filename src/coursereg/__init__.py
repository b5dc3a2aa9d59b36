"""coursereg - Student, course and enrollment records over HTTP."""

__version__ = "0.1.0"
