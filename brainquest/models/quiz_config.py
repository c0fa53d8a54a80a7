"""
Quiz Configuration Models
Category, difficulty and type choices accepted by Open Trivia DB
FILE: brainquest/models/quiz_config.py
"""
from enum import Enum
from typing import Dict, Union

from pydantic import BaseModel, Field, field_validator

# Open Trivia DB refuses batches larger than this
MIN_QUESTION_AMOUNT = 1
MAX_QUESTION_AMOUNT = 50
DEFAULT_QUESTION_AMOUNT = 10


class QuizCategory(int, Enum):
    """Open Trivia DB category ids (0 = any category)"""
    ANY = 0
    GENERAL_KNOWLEDGE = 9
    BOOKS = 10
    FILM = 11
    MUSIC = 12
    MUSICALS_THEATRES = 13
    TELEVISION = 14
    VIDEO_GAMES = 15
    BOARD_GAMES = 16
    SCIENCE_NATURE = 17
    COMPUTERS = 18
    MATHEMATICS = 19
    MYTHOLOGY = 20
    SPORTS = 21
    GEOGRAPHY = 22
    HISTORY = 23
    POLITICS = 24
    ART = 25
    CELEBRITIES = 26
    ANIMALS = 27
    VEHICLES = 28
    COMICS = 29
    GADGETS = 30
    ANIME_MANGA = 31
    CARTOON_ANIMATIONS = 32

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]


_CATEGORY_NAMES: Dict[QuizCategory, str] = {
    QuizCategory.ANY: "Any Category",
    QuizCategory.GENERAL_KNOWLEDGE: "General Knowledge",
    QuizCategory.BOOKS: "Entertainment: Books",
    QuizCategory.FILM: "Entertainment: Film",
    QuizCategory.MUSIC: "Entertainment: Music",
    QuizCategory.MUSICALS_THEATRES: "Entertainment: Musicals & Theatres",
    QuizCategory.TELEVISION: "Entertainment: Television",
    QuizCategory.VIDEO_GAMES: "Entertainment: Video Games",
    QuizCategory.BOARD_GAMES: "Entertainment: Board Games",
    QuizCategory.SCIENCE_NATURE: "Science & Nature",
    QuizCategory.COMPUTERS: "Science: Computers",
    QuizCategory.MATHEMATICS: "Science: Mathematics",
    QuizCategory.MYTHOLOGY: "Mythology",
    QuizCategory.SPORTS: "Sports",
    QuizCategory.GEOGRAPHY: "Geography",
    QuizCategory.HISTORY: "History",
    QuizCategory.POLITICS: "Politics",
    QuizCategory.ART: "Art",
    QuizCategory.CELEBRITIES: "Celebrities",
    QuizCategory.ANIMALS: "Animals",
    QuizCategory.VEHICLES: "Vehicles",
    QuizCategory.COMICS: "Entertainment: Comics",
    QuizCategory.GADGETS: "Science: Gadgets",
    QuizCategory.ANIME_MANGA: "Entertainment: Japanese Anime & Manga",
    QuizCategory.CARTOON_ANIMATIONS: "Entertainment: Cartoon & Animations",
}


class QuizDifficulty(str, Enum):
    ANY = "any"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def display_name(self) -> str:
        return "Any Difficulty" if self is QuizDifficulty.ANY else self.value.capitalize()


class QuizType(str, Enum):
    ANY = "any"
    MULTIPLE = "multiple"
    BOOLEAN = "boolean"

    @property
    def display_name(self) -> str:
        return {
            QuizType.ANY: "Any Type",
            QuizType.MULTIPLE: "Multiple Choice",
            QuizType.BOOLEAN: "True / False",
        }[self]


def clamp_amount(amount: int) -> int:
    """Clamp a requested question count into the provider's accepted range"""
    return max(MIN_QUESTION_AMOUNT, min(MAX_QUESTION_AMOUNT, amount))


class QuizConfig(BaseModel):
    """
    Quiz configuration submitted by the user

    The amount is clamped into [1, 50] rather than rejected, so
    a request for 75 questions becomes a request for 50.
    """
    amount: int = Field(
        default=DEFAULT_QUESTION_AMOUNT,
        description="Number of questions (clamped to 1-50)"
    )
    category: QuizCategory = Field(default=QuizCategory.ANY, description="Open Trivia DB category id")
    difficulty: QuizDifficulty = Field(default=QuizDifficulty.ANY, description="Question difficulty")
    type: QuizType = Field(default=QuizType.ANY, description="Question type")

    @field_validator('amount')
    @classmethod
    def clamp_requested_amount(cls, v):
        """Clamp amount into the accepted range"""
        return clamp_amount(v)

    def to_query_params(self) -> Dict[str, Union[int, str]]:
        """Build the Open Trivia DB query string parameters"""
        params: Dict[str, Union[int, str]] = {"amount": self.amount}
        if self.category is not QuizCategory.ANY:
            params["category"] = self.category.value
        if self.difficulty is not QuizDifficulty.ANY:
            params["difficulty"] = self.difficulty.value
        if self.type is not QuizType.ANY:
            params["type"] = self.type.value
        return params

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "amount": 10,
                "category": 9,
                "difficulty": "easy",
                "type": "multiple"
            }
        }
