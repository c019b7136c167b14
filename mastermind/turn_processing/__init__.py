"""Guess validation.

Every guess goes through the same validator pipeline before it is scored, so
the error kind a caller sees does not depend on where the guess came from.
"""
