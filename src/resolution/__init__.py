"""Version resolution over requirements declared by configuration units."""

from .engine import Evaluation, ResolutionEngine
from .units import ConfigurationUnit, EvaluationConfig, FromFile, ModuleDeclaration

__all__ = [
    "Evaluation",
    "ResolutionEngine",
    "ConfigurationUnit",
    "EvaluationConfig",
    "FromFile",
    "ModuleDeclaration",
]
