"""TokioAI command-line interface."""
