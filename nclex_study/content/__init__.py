"""
Question content: generation, validation and backup questions.
"""
from nclex_study.content.fallback import backup_questions
from nclex_study.content.generator import ContentBatch, QuestionGenerator
from nclex_study.content.provider import ContentProvider, LLMContentProvider
from nclex_study.content.schemas import GeneratedQuestion, parse_generated_questions

__all__ = [
    "ContentBatch",
    "ContentProvider",
    "GeneratedQuestion",
    "LLMContentProvider",
    "QuestionGenerator",
    "backup_questions",
    "parse_generated_questions",
]
