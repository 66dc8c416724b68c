import json

import pytest

from app.services.constants import PLACEHOLDER_OPTIONS
from app.services.response_parser import (
    OutputShape,
    classify_output,
    clean_response_content,
    normalize_flashcards,
    normalize_quiz,
    resolve_correct_answer,
)


def test_clean_response_content_strips_markdown_fence():
    raw = '```json\n[{"question": "Q", "answer": "A"}]\n```'
    assert clean_response_content(raw) == '[{"question": "Q", "answer": "A"}]'


@pytest.mark.parametrize(
    "raw, shape",
    [
        ('[{"question": "q", "answer": "a"}]', OutputShape.ARRAY),
        ('{"cards": []}', OutputShape.CARDS_OBJECT),
        ('{"title": "t", "questions": []}', OutputShape.QUESTIONS_OBJECT),
        ('{"question": "q", "answer": "a"}', OutputShape.SINGLE_RECORD),
        ('{"title": "Generated Quiz"}', OutputShape.OTHER_OBJECT),
        ("42", OutputShape.OTHER_OBJECT),
        ("Q: What?\nA: That.", OutputShape.PLAIN_TEXT),
    ],
)
def test_classify_output(raw, shape):
    assert classify_output(raw).shape is shape


# ---------- Flashcards ----------

def test_plain_text_flashcard():
    cards = normalize_flashcards("Q: What is X?\nA: X is Y.\nD: easy\n---\n", 10)
    assert cards == [{"question": "What is X?", "answer": "X is Y.", "difficulty": "easy"}]


def test_plain_text_blocks_missing_fields_are_dropped():
    raw = (
        "Q: Only a question\n---\n"
        "A: Only an answer\n---\n"
        "Some preamble\nQ: Complete?\nA: Yes.\nD: impossible\n"
    )
    cards = normalize_flashcards(raw, 10)
    assert cards == [{"question": "Complete?", "answer": "Yes.", "difficulty": "medium"}]


def test_json_array_is_truncated():
    raw = json.dumps(
        [{"question": f"Q{i}", "answer": f"A{i}", "difficulty": "hard"} for i in range(8)]
    )
    cards = normalize_flashcards(raw, 3)
    assert [card["question"] for card in cards] == ["Q0", "Q1", "Q2"]


def test_cards_object_and_single_record():
    wrapped = json.dumps({"cards": [{"question": "Q", "answer": "A", "difficulty": "HARD"}]})
    assert normalize_flashcards(wrapped, 5) == [{"question": "Q", "answer": "A", "difficulty": "hard"}]

    single = json.dumps({"question": "Q", "answer": "A"})
    assert normalize_flashcards(single, 5) == [{"question": "Q", "answer": "A", "difficulty": "medium"}]


def test_flashcards_are_not_padded():
    raw = json.dumps([{"question": "Q", "answer": "A"}, "junk", {"question": "no answer"}])
    assert len(normalize_flashcards(raw, 10)) == 1


def test_unrecognized_json_yields_no_flashcards():
    assert normalize_flashcards('{"title": "Generated Quiz", "questions": []}', 5) == []


@pytest.mark.parametrize("count", [0, 1, 2, 7])
def test_flashcard_count_is_an_upper_bound(count):
    raw = json.dumps([{"question": f"Q{i}", "answer": "A", "difficulty": d}
                      for i, d in enumerate(["easy", "bogus", None, "Medium", "hard"])])
    cards = normalize_flashcards(raw, count)
    assert len(cards) <= count
    assert all(card["difficulty"] in {"easy", "medium", "hard"} for card in cards)


# ---------- Quiz ----------

def _assert_well_formed(quiz, count):
    assert len(quiz["questions"]) == count
    for question in quiz["questions"]:
        assert len(question["options"]) == 4
        assert question["correctAnswer"] in question["options"]


def test_malformed_json_falls_back_and_pads():
    quiz = normalize_quiz('{"title": "Broken", "questions": [', 3)
    assert quiz["title"] == "Generated Quiz"
    _assert_well_formed(quiz, 3)
    assert [q["question"] for q in quiz["questions"]] == ["Question 1", "Question 2", "Question 3"]
    assert quiz["questions"][0]["options"] == PLACEHOLDER_OPTIONS
    assert quiz["questions"][0]["correctAnswer"] == "Option A"


def test_well_formed_questions_are_kept():
    raw = json.dumps(
        {
            "title": "Cells",
            "questions": [
                {
                    "question": "Powerhouse of the cell?",
                    "options": ["Nucleus", "Mitochondria", "Ribosome", "Golgi"],
                    "correctAnswer": "Mitochondria",
                    "explanation": "It produces ATP.",
                }
            ],
        }
    )
    quiz = normalize_quiz(raw, 1)
    assert quiz["title"] == "Cells"
    assert quiz["questions"] == [
        {
            "question": "Powerhouse of the cell?",
            "options": ["Nucleus", "Mitochondria", "Ribosome", "Golgi"],
            "correctAnswer": "Mitochondria",
            "explanation": "It produces ATP.",
        }
    ]


def test_quiz_is_truncated_and_padded():
    raw = json.dumps([{"question": f"Q{i}", "options": ["a", "b", "c", "d"], "correctAnswer": "b"}
                      for i in range(6)])
    assert len(normalize_quiz(raw, 4)["questions"]) == 4

    padded = normalize_quiz(raw, 8)["questions"]
    assert padded[5]["question"] == "Q5"
    assert padded[6]["question"] == "Question 7"


def test_short_or_long_option_lists():
    raw = json.dumps(
        [
            {"question": "Short", "options": ["x", "y", "z"], "correctAnswer": "x"},
            {"question": "Long", "options": ["1", "2", "3", "4", "5"], "correctAnswer": "4"},
            {"question": "Missing"},
        ]
    )
    short, long_, missing = normalize_quiz(raw, 3)["questions"]
    assert short["options"] == PLACEHOLDER_OPTIONS
    assert short["correctAnswer"] == "Option A"
    assert long_["options"] == ["1", "2", "3", "4"]
    assert long_["correctAnswer"] == "4"
    assert missing["options"] == PLACEHOLDER_OPTIONS
    assert missing["correctAnswer"] == "Option A"


def test_plain_text_quiz_blocks():
    raw = (
        "Q: Which organelle makes ATP?\n"
        "O1: Nucleus\nO2: Mitochondria\nO3: Ribosome\nO4: Vacuole\n"
        "C: B\nE: Cellular respiration happens there.\nD: easy\n"
        "---\n"
        "Q: Second?\nO1: a\nO2: b\nC: a\n"
    )
    first, second = normalize_quiz(raw, 2)["questions"]
    assert first["correctAnswer"] == "Mitochondria"
    assert first["explanation"] == "Cellular respiration happens there."
    assert first["difficulty"] == "easy"
    assert second["options"] == PLACEHOLDER_OPTIONS


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Mitochondria", "Mitochondria"),
        ("mitochondria", "Mitochondria"),
        ("B", "Mitochondria"),
        ("Option B", "Mitochondria"),
        ("b)", "Mitochondria"),
        (2, "Mitochondria"),
        ("4", "Vacuole"),
        ("Chloroplast", "Nucleus"),
        (None, "Nucleus"),
    ],
)
def test_resolve_correct_answer(value, expected):
    options = ["Nucleus", "Mitochondria", "Ribosome", "Vacuole"]
    assert resolve_correct_answer(value, options) == expected


@pytest.mark.parametrize("count", [1, 2, 5, 10])
def test_quiz_always_has_requested_question_count(count):
    for raw in ["", "not json at all", "[]", '{"cards": []}', '[1, "two", null]']:
        _assert_well_formed(normalize_quiz(raw, count), count)


def test_non_question_objects_get_the_fallback_title():
    quiz = normalize_quiz('{"title": "Deck", "cards": [{"question": "Q", "answer": "A"}]}', 2)
    assert quiz["title"] == "Generated Quiz"
    assert [q["question"] for q in quiz["questions"]] == ["Question 1", "Question 2"]


def test_text_after_closing_fence_is_ignored():
    assert clean_response_content('```json\n{"a": 1}\n```\nHope this helps.') == '{"a": 1}'


def test_fenced_quiz_followed_by_chatter():
    body = json.dumps({"title": "Cells", "questions": [{
        "question": "Powerhouse?",
        "options": ["Nucleus", "Mitochondria", "Ribosome", "Golgi"],
        "correctAnswer": "Mitochondria",
    }]})
    quiz = normalize_quiz(f"```json\n{body}\n```\nLet me know if you need more questions!", 1)
    assert quiz["title"] == "Cells"
    assert quiz["questions"][0]["question"] == "Powerhouse?"
    assert quiz["questions"][0]["correctAnswer"] == "Mitochondria"


def test_fenced_flashcards_followed_by_chatter():
    body = json.dumps([{"question": "What is ATP?", "answer": "Energy currency.", "difficulty": "easy"}])
    cards = normalize_flashcards(f"```\n{body}\n```\nHope this helps.", 1)
    assert cards == [{"question": "What is ATP?", "answer": "Energy currency.", "difficulty": "easy"}]
