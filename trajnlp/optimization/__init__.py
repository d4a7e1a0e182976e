"""Interface to external NLP solvers."""

from trajnlp.optimization.interface import DynamicsNLP

__all__ = [
    "DynamicsNLP",
]
