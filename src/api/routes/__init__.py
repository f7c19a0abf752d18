"""HTTP routers."""

from .accounts import router as accounts_router
from .quizzes import router as quizzes_router
from .results import router as results_router

__all__ = ["accounts_router", "quizzes_router", "results_router"]
