"""Request pull request reviews from code owners configured in a YAML file."""

__version__ = "1.0.0"
