"""TokioAI core components: configuration, logging, errors and data models."""
