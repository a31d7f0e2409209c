"""topicstack command-line interface."""
