"""Collaborators of the chat session: logging, streams, scrolling, and send backends."""
