"""Command interpretation and execution engine."""

from .executor import Executor
from .pipeline import parse_line, split_pipeline
from .redirection import RedirectionSpec, extract_redirections
from .resolver import CommandResolver, Resolution, find_executable
from .tokenizer import tokenize
from .types import ParsedCommand, ParsedLine, PipelineStage, StageKind

__all__ = [
    "CommandResolver",
    "Executor",
    "ParsedCommand",
    "ParsedLine",
    "PipelineStage",
    "RedirectionSpec",
    "Resolution",
    "StageKind",
    "extract_redirections",
    "find_executable",
    "parse_line",
    "split_pipeline",
    "tokenize",
]
