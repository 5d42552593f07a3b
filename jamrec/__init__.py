"""jamrec - chat-driven multitrack recording sessions for a Jamulus server."""

__version__ = "0.1.0"
