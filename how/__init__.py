"""
CLI tool that turns a plain-language request into a shell command using the Gemini API.

The command is shown to the user, executed after confirmation, and when it fails the
error output is fed back to the model so it can propose a corrected command.
"""

__version__ = "0.3.0"
