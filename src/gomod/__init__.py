"""Parsers for go.mod, go.work and go.sum files."""

from .go_mod import load_go_mod, parse_go_mod
from .go_sum import load_sumfile, parse_go_sum
from .go_work import load_go_work, parse_go_work, use_path_to_go_mod
from .models import ParsedManifest, ParsedWorkspace, RequireDirective

__all__ = [
    "load_go_mod",
    "parse_go_mod",
    "load_go_work",
    "parse_go_work",
    "use_path_to_go_mod",
    "load_sumfile",
    "parse_go_sum",
    "ParsedManifest",
    "ParsedWorkspace",
    "RequireDirective",
]
