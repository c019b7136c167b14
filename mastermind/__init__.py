"""Mastermind session service.

Game sessions hold a hidden digit combination, score guesses against it and
live in an expiring key-value store.
"""
