from __future__ import annotations

from services.history.store import ClockIds, CounterIds, QuestionStore
from services.visualization import sanitize_answer


def test_counter_ids_are_sequential_across_prefixes() -> None:
    ids = CounterIds()
    assert [ids("q"), ids("a"), ids("q")] == ["q_1", "a_2", "q_3"]


def test_clock_ids_never_repeat_within_a_millisecond() -> None:
    ids = ClockIds(clock=lambda: 1700000000.0)
    assert ids("q") == "q_1700000000000"
    assert ids("a") == "a_1700000000001"


def test_store_links_answers_to_questions() -> None:
    store = QuestionStore(ids=CounterIds())
    question = store.add_question("What is DNA?", user_id="u7")
    assert question.to_dict() == {"id": "q_1", "userId": "u7", "question": "What is DNA?", "answerId": None}

    answer = store.add_answer(question.id, sanitize_answer({"text": "bases"}))
    assert answer.id == "a_2"
    assert store.questions()[0].answer_id == "a_2"

    stored = store.get_answer("a_2")
    assert stored is answer
    payload = stored.to_dict()
    assert payload["questionId"] == "q_1"
    assert payload["text"] == "bases"
    assert payload["visualization"]["id"] == "vis_safe"


def test_store_returns_none_for_unknown_answer() -> None:
    assert QuestionStore().get_answer("a_404") is None
