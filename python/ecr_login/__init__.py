"""Print container registry login commands for Amazon ECR."""

__version__ = "1.0.0"
