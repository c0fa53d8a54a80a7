"""
Trivia Question Models
Shape of the Open Trivia DB api.php response
"""
import html
import random
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def decode_markup(text: str) -> str:
    """Decode HTML entities (&quot; -> ")"""
    return html.unescape(text)


class Question(BaseModel):
    """A single trivia question as returned by Open Trivia DB"""
    question: str = Field(..., description="Question prompt")
    correct_answer: str = Field(..., description="Canonical correct answer text")
    incorrect_answers: List[str] = Field(default_factory=list, description="Incorrect answer texts")
    category: str = Field(..., description="Category label")
    difficulty: str = Field(..., description="Difficulty label")
    type: str = Field(..., description="multiple or boolean")

    @field_validator('question', 'correct_answer', 'category')
    @classmethod
    def decode_text(cls, v: str) -> str:
        """Decode once at parse time so display and scoring see the same text"""
        return decode_markup(v)

    @field_validator('incorrect_answers')
    @classmethod
    def decode_answers(cls, v: List[str]) -> List[str]:
        return [decode_markup(answer) for answer in v]

    def all_answers(self) -> List[str]:
        return list(self.incorrect_answers) + [self.correct_answer]

    def shuffled_options(self, rng: Optional[random.Random] = None) -> List[str]:
        """
        Answer texts in display order

        Shuffling never touches correct_answer, which stays the
        reference for scoring.
        """
        options = self.all_answers()
        (rng or random).shuffle(options)
        return options

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "question": "What is the capital of France?",
                "correct_answer": "Paris",
                "incorrect_answers": ["Lyon", "Marseille", "Nice"],
                "category": "Geography",
                "difficulty": "easy",
                "type": "multiple"
            }
        }


class TriviaResponse(BaseModel):
    """Raw api.php payload"""
    response_code: int = Field(..., description="0 = success, see Open Trivia DB docs")
    results: List[Question] = Field(default_factory=list)
