# Domain Content Package
from .models import FlashcardModel, MCQModel, ProblemModel

__all__ = ["FlashcardModel", "MCQModel", "ProblemModel"]
