"""kubefs — manifest-driven orchestration for multi-resource projects."""

__version__ = "0.1.0"
