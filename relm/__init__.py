"""relm: release orchestration for multi-module projects."""

__version__ = "0.1.0"
