"""Domain models, configuration, errors and the submission pipeline."""
