"""Command interpretation and execution.

The command layer turns a generated MongoDB shell command (`db.users.find({})`) into a validated
driver call: the matcher classifies its shape, the argument normalizer decodes its arguments, and the
dispatcher executes it and sanitizes the result.
"""
