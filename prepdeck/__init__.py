"""
PrepDeck: timed assessment sessions for interview preparation.

One engine drives all three practice surfaces:
- mcq: multiple-choice quizzes
- coding: coding practice tests
- interview: mock face-to-face interviews (self-rated)
"""

__version__ = "1.0.0"
