# models/__init__.py
# Инициализация моделей

from .project import Project
from .judge import Judge
from .criterion import Criterion
from .score import Score
