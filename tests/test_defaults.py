"""Tests for the built-in catalog."""

from quizsync.data.defaults import get_default_catalog


def test_three_categories_in_order():
    catalog = get_default_catalog()
    assert [c.name for c in catalog] == ["Mathematics", "Marvel Super Heroes", "Science"]
    assert [c.id for c in catalog] == ["math", "marvel", "science"]
    assert [c.image for c in catalog] == ["math-logo", "marvel-avengers-logo", "science-logo"]


def test_every_question_has_four_answers_and_one_correct():
    for category in get_default_catalog():
        assert len(category.questions) == 3
        for question in category.questions:
            assert len(question.answers) == 4
            assert sum(a.is_correct for a in question.answers) == 1


def test_known_answers():
    math, marvel, science = get_default_catalog()
    assert math.questions[0].text == "What is 2 + 2?"
    assert math.questions[0].correct_answer.text == "4"
    assert marvel.questions[1].correct_answer.text == "Vibranium"
    assert science.questions[2].correct_answer.text == "Skin"


def test_deterministic():
    assert get_default_catalog() == get_default_catalog()
