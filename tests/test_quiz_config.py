import pytest
from pydantic import ValidationError

from brainquest.models.question import Question, decode_markup
from brainquest.models.quiz_config import (
    QuizCategory,
    QuizConfig,
    QuizDifficulty,
    QuizType,
    clamp_amount,
)


@pytest.mark.parametrize("requested, effective", [(75, 50), (50, 50), (10, 10), (1, 1), (0, 1), (-3, 1)])
def test_amount_is_clamped(requested, effective):
    assert clamp_amount(requested) == effective
    assert QuizConfig(amount=requested).amount == effective


def test_non_numeric_amount_is_rejected():
    with pytest.raises(ValidationError):
        QuizConfig(amount="lots")


def test_query_params_for_any_choices_only_send_amount():
    assert QuizConfig().to_query_params() == {"amount": 10}


def test_query_params_with_every_choice():
    config = QuizConfig(
        amount=75,
        category=QuizCategory.COMPUTERS,
        difficulty=QuizDifficulty.EASY,
        type=QuizType.MULTIPLE
    )

    assert config.to_query_params() == {
        "amount": 50,
        "category": 18,
        "difficulty": "easy",
        "type": "multiple"
    }


def test_config_accepts_category_ids_from_json():
    config = QuizConfig.model_validate({"amount": 5, "category": 22, "difficulty": "hard", "type": "boolean"})

    assert config.category is QuizCategory.GEOGRAPHY
    assert config.difficulty is QuizDifficulty.HARD
    assert config.type is QuizType.BOOLEAN


def test_config_is_immutable():
    config = QuizConfig()
    with pytest.raises(ValidationError):
        config.amount = 20


def test_display_names():
    assert QuizCategory.ANY.display_name == "Any Category"
    assert QuizCategory.ANIME_MANGA.display_name == "Entertainment: Japanese Anime & Manga"
    assert QuizDifficulty.MEDIUM.display_name == "Medium"
    assert QuizType.BOOLEAN.display_name == "True / False"
    assert all(category.display_name for category in QuizCategory)


def test_shuffled_options_keep_every_answer():
    import random

    question = Question(
        question="Which is a prime?",
        correct_answer="7",
        incorrect_answers=["8", "9", "10"],
        category="Science: Mathematics",
        difficulty="easy",
        type="multiple"
    )

    options = question.shuffled_options(random.Random(1))

    assert sorted(options) == ["10", "7", "8", "9"]
    assert question.correct_answer == "7"


def test_decode_markup():
    assert decode_markup("Who wrote &quot;Hamlet&quot;?") == 'Who wrote "Hamlet"?'
    assert decode_markup("Rock &amp; Roll") == "Rock & Roll"


def test_question_text_is_decoded_when_parsed():
    question = Question.model_validate({
        "question": "Which band sang &quot;Bohemian Rhapsody&quot;?",
        "correct_answer": "Queen &amp; Co",
        "incorrect_answers": ["AC&#047;DC", "Guns N&#039; Roses"],
        "category": "Entertainment: Music",
        "difficulty": "easy",
        "type": "multiple"
    })

    assert question.question == 'Which band sang "Bohemian Rhapsody"?'
    assert question.correct_answer == "Queen & Co"
    assert question.incorrect_answers == ["AC/DC", "Guns N' Roses"]
